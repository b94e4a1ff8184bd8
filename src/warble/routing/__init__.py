"""File-based routing: scanning, pattern matching and per-session route state."""

from warble.routing.core import DEFAULT_ROOT_MODULE, RouteCore, default_root_route
from warble.routing.manifest import manifest_from_dict, manifest_to_dict, read_manifest, write_manifest
from warble.routing.matcher import RouteMatcher
from warble.routing.pattern import (
    CompiledPattern,
    file_path_to_pattern,
    parse_pattern,
    sort_by_specificity,
)
from warble.routing.scanner import discover_widgets, generate_routes_manifest, walk_directory
from warble.routing.types import (
    ErrorBoundary,
    MatchedRoute,
    RouteConfig,
    RouteFiles,
    RouteInfo,
    RouterEvent,
    RoutesManifest,
    ScanResult,
)

__all__ = [
    "DEFAULT_ROOT_MODULE",
    "CompiledPattern",
    "ErrorBoundary",
    "MatchedRoute",
    "RouteConfig",
    "RouteCore",
    "RouteFiles",
    "RouteInfo",
    "RouteMatcher",
    "RouterEvent",
    "RoutesManifest",
    "ScanResult",
    "default_root_route",
    "discover_widgets",
    "file_path_to_pattern",
    "generate_routes_manifest",
    "manifest_from_dict",
    "manifest_to_dict",
    "parse_pattern",
    "read_manifest",
    "sort_by_specificity",
    "walk_directory",
    "write_manifest",
]
