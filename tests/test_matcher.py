"""Tests for warble.routing.matcher — first structural match in specificity order."""

from types import MappingProxyType

from warble.routing.matcher import RouteMatcher, split_url
from warble.routing.types import ErrorBoundary, RouteConfig, RoutesManifest


def _manifest(*patterns: str, **kwargs) -> RoutesManifest:
    routes = tuple(RouteConfig(pattern=p, type="page", module_path=p) for p in patterns)
    return RoutesManifest(routes=routes, **kwargs)


class TestSplitUrl:
    def test_path_and_query(self) -> None:
        assert split_url("/projects/42?tab=files") == ("/projects/42", "tab=files")

    def test_absolute_url(self) -> None:
        assert split_url("https://example.com/about") == ("/about", "")

    def test_empty_path(self) -> None:
        assert split_url("https://example.com") == ("/", "")


class TestMatch:
    def test_most_specific_wins(self) -> None:
        matcher = RouteMatcher(_manifest("/docs/:rest*", "/docs/:id", "/docs/intro"))
        assert matcher.match("/docs/intro").route.pattern == "/docs/intro"
        assert matcher.match("/docs/other").route.pattern == "/docs/:id"
        assert matcher.match("/docs/a/b").route.pattern == "/docs/:rest*"

    def test_params_and_query(self) -> None:
        matcher = RouteMatcher(_manifest("/projects/:id"))
        matched = matcher.match("/projects/42?tab=files")
        assert matched.params == {"id": "42"}
        assert matched.search_params["tab"] == "files"

    def test_trailing_slash_insignificant(self) -> None:
        matcher = RouteMatcher(_manifest("/about"))
        assert matcher.match("/about/").route.pattern == "/about"

    def test_no_match(self) -> None:
        assert RouteMatcher(_manifest("/about")).match("/missing") is None

    def test_invalid_pattern_skipped(self) -> None:
        matcher = RouteMatcher(_manifest("/ok", "/bad/:rest*/x"))
        assert [r.pattern for r in matcher.routes] == ["/ok"]


class TestLookups:
    def test_error_boundary_longest_prefix(self) -> None:
        matcher = RouteMatcher(
            _manifest(
                error_boundaries=(
                    ErrorBoundary(pattern="/admin", module_path="a"),
                    ErrorBoundary(pattern="/admin/users", module_path="b"),
                ),
            ),
        )
        assert matcher.find_error_boundary("/admin/crash").module_path == "a"
        assert matcher.find_error_boundary("/admin/users/7").module_path == "b"
        assert matcher.find_error_boundary("/admin").module_path == "a"

    def test_error_boundary_prefix_is_segment_aligned(self) -> None:
        matcher = RouteMatcher(
            _manifest(error_boundaries=(ErrorBoundary(pattern="/admin", module_path="a"),)),
        )
        assert matcher.find_error_boundary("/administrator") is None

    def test_status_page_and_handler(self) -> None:
        page = RouteConfig(pattern="/404", type="page", module_path="404.page.md", status_code=404)
        handler = RouteConfig(pattern="/", type="error", module_path="index.error.py")
        matcher = RouteMatcher(
            _manifest(status_pages=MappingProxyType({404: page}), error_handler=handler),
        )
        assert matcher.get_status_page(404) is page
        assert matcher.get_status_page(500) is None
        assert matcher.get_error_handler() is handler

    def test_find_route_exact_pattern_first(self) -> None:
        matcher = RouteMatcher(_manifest("/projects/:id", "/projects/new"))
        assert matcher.find_route("/projects/:id").pattern == "/projects/:id"
        assert matcher.find_route("/projects/7").pattern == "/projects/:id"
        assert matcher.find_route("/nothing") is None
