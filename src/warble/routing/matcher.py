"""Route matcher over a specificity-ordered route table.

The manifest's routes are compiled once.  ``match`` walks them in order
and returns the first structural match, which the ordering guarantees is
the most specific one.
"""

from __future__ import annotations

import logging
from urllib.parse import urlsplit

from warble.errors import ConfigurationError
from warble.query import QueryParams
from warble.routing.pattern import CompiledPattern, sort_by_specificity, split_path
from warble.routing.types import ErrorBoundary, MatchedRoute, RouteConfig, RoutesManifest

logger = logging.getLogger("warble.routing")


def split_url(url: str) -> tuple[str, str]:
    """Return ``(pathname, query)`` for a URL or bare path.

    Absolute URLs have their scheme and host dropped.  A missing path
    becomes ``/``.
    """
    parts = urlsplit(url)
    return parts.path or "/", parts.query


class RouteMatcher:
    """Compiled route table plus the error and status lookups.

    Usage::

        matcher = RouteMatcher(manifest)
        matched = matcher.match("/projects/42?tab=files")
        matched.params           # {"id": "42"}
        matched.search_params    # QueryParams({'tab': 'files'})
    """

    __slots__ = ("_compiled", "_error_boundaries", "_error_handler", "_status_pages")

    def __init__(self, manifest: RoutesManifest) -> None:
        self._compiled: list[tuple[RouteConfig, CompiledPattern]] = []
        for route in sort_by_specificity(manifest.routes):
            try:
                self._compiled.append((route, CompiledPattern.compile(route.pattern)))
            except ConfigurationError:
                logger.exception("Invalid route pattern %r skipped", route.pattern)

        # Longest prefix first
        self._error_boundaries: list[ErrorBoundary] = sorted(
            manifest.error_boundaries,
            key=lambda boundary: len(boundary.pattern),
            reverse=True,
        )
        self._status_pages = manifest.status_pages
        self._error_handler = manifest.error_handler

    @property
    def routes(self) -> list[RouteConfig]:
        """Compiled routes in match order."""
        return [route for route, _ in self._compiled]

    def match(self, url: str) -> MatchedRoute | None:
        """Match a URL against the route table. ``None`` if nothing matches."""
        pathname, query = split_url(url)
        parts = split_path(pathname)

        for route, compiled in self._compiled:
            params = compiled.match_parts(parts)
            if params is not None:
                return MatchedRoute(route=route, params=params, search_params=QueryParams(query))
        return None

    def find_error_boundary(self, pathname: str) -> ErrorBoundary | None:
        """Nearest boundary whose pattern is *pathname* or a path prefix of it."""
        for boundary in self._error_boundaries:
            prefix = boundary.pattern if boundary.pattern.endswith("/") else boundary.pattern + "/"
            if pathname == boundary.pattern or pathname.startswith(prefix):
                return boundary
        return None

    def get_status_page(self, status: int) -> RouteConfig | None:
        return self._status_pages.get(status)

    def get_error_handler(self) -> RouteConfig | None:
        return self._error_handler

    def find_route(self, pattern_or_path: str) -> RouteConfig | None:
        """Find a route by exact pattern, else by matching it as a path."""
        for route, _ in self._compiled:
            if route.pattern == pattern_or_path:
                return route

        matched = self.match(pattern_or_path)
        return matched.route if matched is not None else None
