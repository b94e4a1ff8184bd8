"""Test helpers for warble sites.

``MemoryStorage`` backs the scanner and module loaders with a dict, so a
whole site can be described inline::

    storage = MemoryStorage({
        "/routes/index.page.html": "<h1>Home</h1><router-slot></router-slot>",
        "/routes/about.page.md": "# About",
    })
    result = await generate_routes_manifest("/routes", storage)
"""

import dataclasses
from collections.abc import Mapping
from types import MappingProxyType, SimpleNamespace
from typing import Any

from warble.routing.scanner import generate_routes_manifest
from warble.routing.types import ModuleLoader, RoutesManifest, ScanResult


class MemoryStorage:
    """In-memory ``Storage``. Directories exist implicitly for every stored path.

    Args:
        files: Initial contents keyed by absolute path. ``str`` values are
            stored UTF-8 encoded.
    """

    def __init__(self, files: Mapping[str, str | bytes] | None = None) -> None:
        self.files: dict[str, bytes] = {}
        self.reads: list[str] = []
        for path, content in (files or {}).items():
            self.files[_normalize(path)] = content.encode("utf-8") if isinstance(content, str) else content

    async def read(self, path: str) -> bytes:
        path = _normalize(path)
        self.reads.append(path)
        try:
            return self.files[path]
        except KeyError:
            raise FileNotFoundError(path) from None

    async def list_dir(self, path: str) -> list[str]:
        prefix = _normalize(path).rstrip("/") + "/"
        entries: set[str] = set()
        for stored in self.files:
            if not stored.startswith(prefix):
                continue
            name, sep, _ = stored[len(prefix):].partition("/")
            entries.add(name + sep)
        if not entries:
            raise FileNotFoundError(path)
        return sorted(entries)

    async def write(self, path: str, data: bytes) -> None:
        self.files[_normalize(path)] = data


def _normalize(path: str) -> str:
    return path if path.startswith("/") else "/" + path


def module(**attrs: Any) -> SimpleNamespace:
    """A stand-in module object, e.g. ``module(page=MyPage())`` or ``module(to="/new")``."""
    return SimpleNamespace(**attrs)


async def scan(files: Mapping[str, str | bytes], routes_dir: str = "/routes") -> ScanResult:
    """Scan an inline file tree."""
    return await generate_routes_manifest(routes_dir, MemoryStorage(files))


def with_loaders(manifest: RoutesManifest, loaders: Mapping[str, ModuleLoader]) -> RoutesManifest:
    """Copy of *manifest* whose modules come from *loaders* instead of storage."""
    merged = {**manifest.module_loaders, **loaders}
    return dataclasses.replace(manifest, module_loaders=MappingProxyType(merged))
