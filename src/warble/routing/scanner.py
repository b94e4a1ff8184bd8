"""Route manifest scanning through the storage boundary.

Walks the routes directory and classifies every file:

- ``index.error.py`` at the root becomes the global error handler
- ``404.page.md`` (any 3-digit code, top level only) becomes a status page
- ``*.error.py`` becomes an error boundary for its directory
- ``*.redirect.py`` becomes a redirect route
- ``*.page.{py,html,md}`` files are grouped by pattern into page routes,
  with ``*.page.css`` merged in as a companion

Example tree::

    routes/
      index.page.html        -> /
      about.page.md          -> /about
      docs/index.page.md     -> /docs/:rest*
      projects/[id].page.py  -> /projects/:id
      admin/admin.error.py   -> error boundary for /admin
      old.redirect.py        -> /old (redirect)
      404.page.html          -> status page 404
      index.error.py         -> global error handler

Every read goes through a ``Storage``, never the local filesystem.
"""

from __future__ import annotations

import logging
import re
from collections.abc import AsyncIterator
from types import MappingProxyType

from warble.routing.pattern import (
    file_path_to_pattern,
    get_page_file_type,
    get_route_type,
    parent_pattern,
    sort_by_specificity,
)
from warble.routing.types import (
    MODULE_PRECEDENCE,
    ErrorBoundary,
    RouteConfig,
    RouteFiles,
    RoutesManifest,
    ScanResult,
)
from warble.storage import Storage, exists
from warble.widgets.registry import WidgetManifestEntry

logger = logging.getLogger("warble.scanner")

# Status pages: "404.page.html" at the top level of the routes directory
_STATUS_PAGE_RE = re.compile(r"^(\d{3})\.page\.(py|html|md)$")

_GLOBAL_ERROR_HANDLER = "index.error.py"
_WIDGET_SUFFIX = ".widget.py"
_COMPANION_TYPES = ("html", "md", "css")


async def walk_directory(storage: Storage, directory: str) -> AsyncIterator[str]:
    """Yield every file path under *directory*, depth first, in listing order."""
    base = directory if directory.endswith("/") else directory + "/"
    for entry in await storage.list_dir(base):
        path = base + entry
        if entry.endswith("/"):
            async for nested in walk_directory(storage, path):
                yield nested
        else:
            yield path


def _is_index_file(path: str) -> bool:
    return path.rsplit("/", 1)[-1].startswith("index.page.")


class RouteGroup:
    """Files sharing one route pattern, accumulated during a scan."""

    __slots__ = ("files", "pattern")

    def __init__(self, pattern: str) -> None:
        self.pattern = pattern
        self.files: dict[str, str] = {}

    def add(self, file_type: str, path: str) -> str | None:
        """Put *path* into the *file_type* slot.

        Returns a warning when an index file and a flat file compete for
        the same slot. The index file keeps the slot.
        """
        existing = self.files.get(file_type)
        if existing is None or _is_index_file(existing) == _is_index_file(path):
            self.files[file_type] = path
            return None

        kept = existing if _is_index_file(existing) else path
        self.files[file_type] = kept
        return (
            f"Mixed file structure for {self.pattern}:\n"
            f"     {existing}\n"
            f"     {path}\n"
            f"     Both folder/index and flat files detected; using {kept}"
        )

    def to_route(self) -> RouteConfig | None:
        files = RouteFiles(**self.files)
        module_path = files.primary()
        if module_path is None:
            return None
        return RouteConfig(
            pattern=self.pattern,
            type="page",
            module_path=module_path,
            files=files,
            parent=parent_pattern(self.pattern),
        )


def _status_page(code: int, files: dict[str, str]) -> RouteConfig:
    module_path = next(files[t] for t in MODULE_PRECEDENCE if t in files)
    return RouteConfig(
        pattern=f"/{code}",
        type="page",
        module_path=module_path,
        files=RouteFiles(**files),
        status_code=code,
    )


async def generate_routes_manifest(routes_dir: str, storage: Storage) -> ScanResult:
    """Scan *routes_dir* through *storage* and build a routes manifest.

    Raises ``FileNotFoundError`` if *routes_dir* cannot be listed.
    Collisions between folder-index and flat files are reported in
    ``ScanResult.warnings``; they never fail the scan.
    """
    routes_dir = routes_dir.rstrip("/")
    groups: dict[str, RouteGroup] = {}
    redirects: list[RouteConfig] = []
    error_boundaries: list[ErrorBoundary] = []
    status_files: dict[int, dict[str, str]] = {}
    status_pages: dict[int, RouteConfig] = {}
    error_handler: RouteConfig | None = None
    warnings: list[str] = []

    async for file_path in walk_directory(storage, routes_dir):
        relative = file_path[len(routes_dir) + 1:]
        filename = relative.rsplit("/", 1)[-1]

        if relative == _GLOBAL_ERROR_HANDLER:
            error_handler = RouteConfig(pattern="/", type="error", module_path=file_path)
            continue

        file_type = get_page_file_type(filename)
        if file_type == "css":
            pattern = file_path_to_pattern(relative)
            groups.setdefault(pattern, RouteGroup(pattern)).add("css", file_path)
            continue

        route_type = get_route_type(filename)
        if route_type is None:
            continue

        status_match = _STATUS_PAGE_RE.match(relative)
        if status_match is not None:
            code = int(status_match.group(1))
            files = status_files.setdefault(code, {})
            files[status_match.group(2)] = file_path
            status_pages[code] = _status_page(code, files)
            continue

        pattern = file_path_to_pattern(relative)

        if route_type == "error":
            boundary_pattern = re.sub(r"/[^/]+$", "", pattern) or "/"
            error_boundaries.append(ErrorBoundary(pattern=boundary_pattern, module_path=file_path))
            continue

        if route_type == "redirect":
            redirects.append(RouteConfig(pattern=pattern, type="redirect", module_path=file_path))
            continue

        if file_type is not None:
            warning = groups.setdefault(pattern, RouteGroup(pattern)).add(file_type, file_path)
            if warning is not None:
                warnings.append(warning)

    routes = [route for group in groups.values() if (route := group.to_route()) is not None]
    routes.extend(redirects)

    for warning in warnings:
        logger.warning(warning)

    manifest = RoutesManifest(
        routes=tuple(sort_by_specificity(routes)),
        error_boundaries=tuple(error_boundaries),
        status_pages=MappingProxyType(dict(sorted(status_pages.items()))),
        error_handler=error_handler,
    )
    logger.debug(
        "Scanned %s: %d routes, %d boundaries, %d status pages",
        routes_dir,
        len(manifest.routes),
        len(manifest.error_boundaries),
        len(manifest.status_pages),
    )
    return ScanResult(manifest=manifest, warnings=tuple(warnings))


async def discover_widgets(
    widgets_dir: str,
    storage: Storage,
    path_prefix: str | None = None,
) -> list[WidgetManifestEntry]:
    """Find ``<name>/<name>.widget.py`` modules and their companion files.

    Directories without a widget module are skipped.  Entries are sorted
    by name.
    """
    base = widgets_dir if widgets_dir.endswith("/") else widgets_dir + "/"
    prefix = f"{path_prefix}/" if path_prefix else ""
    entries: list[WidgetManifestEntry] = []

    for item in await storage.list_dir(base):
        if not item.endswith("/"):
            continue

        name = item[:-1]
        module_file = f"{name}{_WIDGET_SUFFIX}"
        if not await exists(storage, f"{base}{name}/{module_file}"):
            continue

        files: dict[str, str] = {}
        for ext in _COMPANION_TYPES:
            companion = f"{name}.widget.{ext}"
            if await exists(storage, f"{base}{name}/{companion}"):
                files[ext] = f"{prefix}{name}/{companion}"

        entries.append(
            WidgetManifestEntry(
                name=name,
                module_path=f"{prefix}{name}/{module_file}",
                tag_name=f"widget-{name}",
                files=MappingProxyType(files) if files else None,
            ),
        )

    entries.sort(key=lambda entry: entry.name)
    return entries
