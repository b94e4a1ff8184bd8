"""warble exception hierarchy.

Shared across the scanner, RouteCore, the render pipeline and widgets so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class WarbleError(Exception):
    """Base for all warble-specific errors."""


class ConfigurationError(WarbleError):
    """Raised when router configuration or a route module is invalid."""


class ModuleLoadError(WarbleError):
    """Raised when a route or widget module cannot be loaded."""


class MissingDependencyError(ConfigurationError):
    """An optional feature was used without its extra installed."""

    def __init__(self, feature: str, package: str, extra: str) -> None:
        self.package = package
        self.extra = extra
        super().__init__(
            f"{feature} requires {package!r}. Install with: pip install warble[{extra}]"
        )


class UnsafeRedirect(WarbleError):  # noqa: N818 — reads as a condition, like NotFound
    """A redirect target uses a forbidden protocol.

    The only error the render pipeline lets escape: an unsafe redirect is
    a content bug that must never be turned into a normal response.
    """

    def __init__(self, target: str) -> None:
        self.target = target
        super().__init__(f"Unsafe redirect target rejected: {target!r}")


class RenderAborted(WarbleError):  # noqa: N818
    """Raised internally when a render's abort signal fires."""


@dataclass(frozen=True, slots=True)
class HTTPError(WarbleError):
    """A status-coded short-circuit raised from component code.

    Raise from ``get_data`` to render the registered status page for
    *status* instead of the page::

        def get_data(self, params, signal=None, context=None):
            if not user_can_view(params["id"]):
                raise HTTPError(403, "members only")
    """

    status: int
    detail: str = ""

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


class NotFound(HTTPError):  # noqa: N818 — conventional name in web frameworks
    """404 — no route matched, or a component reported a missing resource."""

    def __init__(self, detail: str = "Not Found") -> None:
        super().__init__(status=404, detail=detail)
