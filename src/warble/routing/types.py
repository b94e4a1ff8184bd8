"""Data models for file-derived routing.

Frozen dataclasses describing routes, error boundaries and the manifest
the scanner produces.  Built once per scan and shared read-only by every
``RouteCore`` that wraps the manifest.
"""

from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Literal

from warble.query import QueryParams

RouteType = Literal["page", "redirect", "error"]
FileType = Literal["py", "html", "md", "css"]

# Module file precedence; css is companion-only and never selects module_path.
MODULE_PRECEDENCE: tuple[FileType, ...] = ("py", "html", "md")

# Returns the module, or an awaitable resolving to it.
ModuleLoader = Callable[[], Any]


@dataclass(frozen=True, slots=True)
class RouteFiles:
    """Files available for a route, by type."""

    py: str | None = None
    html: str | None = None
    md: str | None = None
    css: str | None = None

    def get(self, file_type: str) -> str | None:
        return getattr(self, file_type, None)

    def primary(self) -> str | None:
        """The module path by py > html > md precedence."""
        for file_type in MODULE_PRECEDENCE:
            path = self.get(file_type)
            if path:
                return path
        return None

    def items(self) -> list[tuple[str, str]]:
        return [
            (name, path)
            for name in ("py", "html", "md", "css")
            if (path := getattr(self, name)) is not None
        ]


@dataclass(frozen=True, slots=True)
class RouteConfig:
    """One route in the manifest.

    Attributes:
        pattern: Path pattern, e.g. ``/projects/:id``. Always starts with ``/``.
        type: ``page``, ``redirect`` or ``error``.
        module_path: Primary file for the route.
        files: All files grouped under this pattern.
        parent: Parent pattern, set at scan time for nested routes.
        status_code: HTTP status for status pages (404, 403, ...).
    """

    pattern: str
    type: RouteType
    module_path: str
    files: RouteFiles | None = None
    parent: str | None = None
    status_code: int | None = None


@dataclass(frozen=True, slots=True)
class ErrorBoundary:
    """An error renderer scoped to every path under ``pattern``."""

    pattern: str
    module_path: str


@dataclass(frozen=True, slots=True)
class RoutesManifest:
    """The route table consumed by ``RouteCore``.

    ``routes`` are kept in specificity order (see
    ``warble.routing.pattern.sort_by_specificity``).
    """

    routes: tuple[RouteConfig, ...] = ()
    error_boundaries: tuple[ErrorBoundary, ...] = ()
    status_pages: Mapping[int, RouteConfig] = field(
        default_factory=lambda: MappingProxyType({}),
    )
    error_handler: RouteConfig | None = None
    module_loaders: Mapping[str, ModuleLoader] = field(
        default_factory=lambda: MappingProxyType({}),
    )


@dataclass(frozen=True, slots=True)
class ScanResult:
    """A scanned manifest plus the non-fatal warnings raised while building it."""

    manifest: RoutesManifest
    warnings: tuple[str, ...] = ()


@dataclass(frozen=True, slots=True)
class MatchedRoute:
    """Result of a successful route match."""

    route: RouteConfig
    params: Mapping[str, str]
    search_params: QueryParams = field(default_factory=QueryParams)


@dataclass(frozen=True, slots=True)
class RouteInfo:
    """Navigation context built once per render and shared by every segment."""

    pathname: str
    pattern: str
    params: Mapping[str, str]
    search_params: QueryParams = field(default_factory=QueryParams)


@dataclass(frozen=True, slots=True)
class RouterEvent:
    """Emitted by ``RouteCore.emit`` to registered listeners.

    ``type`` is ``navigate``, ``load`` or ``error``.
    """

    type: Literal["navigate", "load", "error"]
    pathname: str
    params: Mapping[str, str] = field(default_factory=dict)
    error: BaseException | None = None


RouterEventListener = Callable[[RouterEvent], None]
