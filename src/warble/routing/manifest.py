"""Manifest persistence.

A scanned manifest serializes to JSON so a build step can scan once and
servers can start without walking the routes directory::

    result = await generate_routes_manifest("/routes", storage)
    await write_manifest(storage, result, "/routes.manifest.json")
    ...
    manifest = await read_manifest(storage, "/routes.manifest.json")

Module loaders are code, not data; they are never serialized.
"""

import json
import logging
from types import MappingProxyType
from typing import Any

from warble.errors import ConfigurationError
from warble.routing.types import ErrorBoundary, RouteConfig, RouteFiles, RoutesManifest, ScanResult
from warble.storage import Storage, read_text

logger = logging.getLogger("warble.scanner")

MANIFEST_VERSION = 1


def _route_to_dict(route: RouteConfig) -> dict[str, Any]:
    data: dict[str, Any] = {
        "pattern": route.pattern,
        "type": route.type,
        "module_path": route.module_path,
    }
    if route.files is not None:
        data["files"] = dict(route.files.items())
    if route.parent is not None:
        data["parent"] = route.parent
    if route.status_code is not None:
        data["status_code"] = route.status_code
    return data


def _route_from_dict(data: dict[str, Any]) -> RouteConfig:
    files = data.get("files")
    return RouteConfig(
        pattern=data["pattern"],
        type=data["type"],
        module_path=data["module_path"],
        files=RouteFiles(**files) if files is not None else None,
        parent=data.get("parent"),
        status_code=data.get("status_code"),
    )


def manifest_to_dict(result: ScanResult | RoutesManifest) -> dict[str, Any]:
    """JSON-ready form of a manifest. Scan warnings are kept when present."""
    manifest = result.manifest if isinstance(result, ScanResult) else result
    data: dict[str, Any] = {
        "version": MANIFEST_VERSION,
        "routes": [_route_to_dict(route) for route in manifest.routes],
        "error_boundaries": [
            {"pattern": b.pattern, "module_path": b.module_path} for b in manifest.error_boundaries
        ],
        "status_pages": {str(code): _route_to_dict(page) for code, page in manifest.status_pages.items()},
        "error_handler": (
            _route_to_dict(manifest.error_handler) if manifest.error_handler is not None else None
        ),
    }
    if isinstance(result, ScanResult) and result.warnings:
        data["warnings"] = list(result.warnings)
    return data


def manifest_from_dict(data: dict[str, Any]) -> RoutesManifest:
    """Rebuild a manifest from ``manifest_to_dict`` output.

    Raises:
        ConfigurationError: If the data is malformed or from another version.
    """
    version = data.get("version", MANIFEST_VERSION)
    if version != MANIFEST_VERSION:
        msg = f"Unsupported manifest version {version!r} (expected {MANIFEST_VERSION})"
        raise ConfigurationError(msg)

    try:
        handler = data.get("error_handler")
        return RoutesManifest(
            routes=tuple(_route_from_dict(route) for route in data.get("routes", ())),
            error_boundaries=tuple(
                ErrorBoundary(pattern=b["pattern"], module_path=b["module_path"])
                for b in data.get("error_boundaries", ())
            ),
            status_pages=MappingProxyType(
                {int(code): _route_from_dict(page) for code, page in data.get("status_pages", {}).items()},
            ),
            error_handler=_route_from_dict(handler) if handler is not None else None,
        )
    except (KeyError, TypeError, ValueError) as exc:
        msg = f"Malformed routes manifest: {exc}"
        raise ConfigurationError(msg) from exc


async def write_manifest(storage: Storage, result: ScanResult | RoutesManifest, path: str) -> None:
    """Serialize *result* as JSON and write it through *storage*."""
    payload = json.dumps(manifest_to_dict(result), indent=2)
    await storage.write(path, payload.encode("utf-8"))
    logger.debug("Wrote routes manifest to %s", path)


async def read_manifest(storage: Storage, path: str) -> RoutesManifest:
    """Read a manifest written by ``write_manifest``.

    Raises ``FileNotFoundError`` when *path* does not exist.
    """
    text = await read_text(storage, path)
    try:
        data = json.loads(text)
    except json.JSONDecodeError as exc:
        msg = f"Routes manifest {path} is not valid JSON: {exc}"
        raise ConfigurationError(msg) from exc
    return manifest_from_dict(data)
