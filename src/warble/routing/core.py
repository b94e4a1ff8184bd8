"""RouteCore — per-session routing state over one immutable manifest.

Shared by every render format:

- route matching with the root fallback
- route hierarchy building
- module loading with single-flight caching
- companion file loading with single-flight caching
- router event emission

A RouteCore lives for one render session.  Its caches only grow; nothing
is evicted until the instance is dropped.
"""

from __future__ import annotations

import importlib
import importlib.abc
import importlib.machinery
import importlib.util
import logging
import sys
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import anyio
import httpx

from warble import abort
from warble._internal.invoke import invoke
from warble.abort import AbortSignal
from warble.components.base import ComponentContext, ComponentFiles
from warble.config import RouterConfig
from warble.errors import ModuleLoadError, WarbleError
from warble.query import QueryParams
from warble.routing.matcher import RouteMatcher, split_url
from warble.routing.pattern import split_path
from warble.routing.types import (
    MatchedRoute,
    RouteConfig,
    RouteFiles,
    RouteInfo,
    RouterEvent,
    RouterEventListener,
    RoutesManifest,
)
from warble.storage import Storage, read_text

logger = logging.getLogger("warble.routing")

# Module path of the synthesized root route; it has no files and renders a bare slot.
DEFAULT_ROOT_MODULE = "__default_root__"


def default_root_route(root: str = "/") -> RouteConfig:
    return RouteConfig(pattern=root, type="page", module_path=DEFAULT_ROOT_MODULE)


def to_absolute_path(path: str) -> str:
    return path if path.startswith("/") else "/" + path


class _Flight:
    """One in-flight or finished load, shared by every caller of the same key."""

    __slots__ = ("done", "error", "value")

    def __init__(self) -> None:
        self.done = anyio.Event()
        self.value: Any = None
        self.error: BaseException | None = None

    async def result(self) -> Any:
        await self.done.wait()
        if self.error is not None:
            raise self.error
        return self.value


@dataclass(frozen=True, slots=True)
class _Unsubscribe:
    core: RouteCore
    listener: RouterEventListener

    def __call__(self) -> None:
        self.core._listeners.pop(self.listener, None)


class RouteCore:
    """Routing state for one render session.

    Args:
        manifest: The route table. Never mutated.
        config: Router configuration.
        storage: I/O boundary used to read companion files and, when no
            loader is registered, module source.
        http_client: Client for ``http(s)`` companion fetches. A fresh
            client is opened per fetch when omitted.
    """

    def __init__(
        self,
        manifest: RoutesManifest,
        config: RouterConfig | None = None,
        *,
        storage: Storage | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.manifest = manifest
        self.config = config or RouterConfig()
        self.matcher = RouteMatcher(manifest)
        self._storage = storage
        self._http_client = http_client
        self._module_loaders = manifest.module_loaders
        self._modules: dict[str, _Flight] = {}
        self._files: dict[str, _Flight] = {}
        self._listeners: dict[RouterEventListener, None] = {}
        self.current_route: MatchedRoute | None = None

    @property
    def root(self) -> str:
        return self.config.root

    # -- Matching -----------------------------------------------------------

    def match(self, url: str) -> MatchedRoute | None:
        """Match *url*, falling back to a slot-only route for the exact root."""
        matched = self.matcher.match(url)
        if matched is not None:
            logger.debug("Matched %s -> %s", url, matched.route.pattern)
            return matched

        pathname, query = split_url(url)
        if self.normalize_url(pathname) == self.root:
            return MatchedRoute(
                route=default_root_route(self.root),
                params={},
                search_params=QueryParams(query),
            )
        return None

    def build_route_hierarchy(self, pattern: str) -> list[str]:
        """Ancestor patterns from the root down to *pattern*, inclusive.

        ``/projects/:id/tasks`` ->
        ``["/", "/projects", "/projects/:id", "/projects/:id/tasks"]``
        """
        root = self.root
        if pattern == root:
            return [root]

        if root != "/" and (pattern == root or pattern.startswith(root + "/")):
            remainder = pattern[len(root):]
            current = root
        else:
            remainder = pattern
            current = "" if root == "/" else root

        hierarchy = [root]
        for segment in split_path(remainder):
            current += "/" + segment
            hierarchy.append(current)
        return hierarchy

    def normalize_url(self, url: str) -> str:
        """Strip one trailing slash, except from the bare root."""
        if len(url) > 1 and url.endswith("/"):
            return url[:-1]
        return url

    def to_route_info(self, matched: MatchedRoute, pathname: str) -> RouteInfo:
        return RouteInfo(
            pathname=pathname,
            pattern=matched.route.pattern,
            params=matched.params,
            search_params=matched.search_params,
        )

    def get_params(self) -> Mapping[str, str]:
        if self.current_route is None:
            return {}
        return self.current_route.params

    # -- Module loading -----------------------------------------------------

    async def load_module(self, module_path: str) -> Any:
        """Load a module once per session.

        Concurrent first calls for the same path share one load and
        receive the same object.  A failed load is not cached.
        """
        flight = self._modules.get(module_path)
        if flight is not None:
            return await flight.result()

        flight = _Flight()
        self._modules[module_path] = flight
        try:
            flight.value = await self._import(module_path)
        except BaseException as exc:
            flight.error = exc if isinstance(exc, Exception) else ModuleLoadError(
                f"Loading {module_path!r} was interrupted"
            )
            del self._modules[module_path]
            raise
        finally:
            flight.done.set()
        return flight.value

    async def _import(self, module_path: str) -> Any:
        loader = self._module_loaders.get(module_path)
        if loader is not None:
            return await invoke(loader)
        return await self._dynamic_import(module_path)

    async def _dynamic_import(self, module_path: str) -> Any:
        """Import without a registered loader.

        Reads the source through storage when one is configured, otherwise
        imports a ``.py`` file path or a dotted module name.
        """
        try:
            if self._storage is not None:
                source = await read_text(self._storage, to_absolute_path(module_path))
                return _exec_module(module_path, source)
            if module_path.endswith(".py"):
                return _import_file(Path(module_path))
            return importlib.import_module(module_path)
        except (OSError, ImportError, SyntaxError, UnicodeDecodeError) as exc:
            msg = f"Cannot load module {module_path!r}: {exc}"
            raise ModuleLoadError(msg) from exc

    # -- Companion files ----------------------------------------------------

    async def load_file(self, path: str, signal: AbortSignal | None = None) -> str | None:
        """Fetch a companion file's text once per session. ``None`` if absent."""
        flight = self._files.get(path)
        if flight is not None:
            return await flight.result()

        abort.check(signal)
        flight = _Flight()
        self._files[path] = flight
        try:
            flight.value = await self._fetch_text(path)
        except BaseException as exc:
            flight.error = exc if isinstance(exc, Exception) else WarbleError(
                f"Loading {path!r} was interrupted"
            )
            del self._files[path]
            raise
        finally:
            flight.done.set()
        return flight.value

    async def _fetch_text(self, path: str) -> str | None:
        try:
            if path.startswith(("http://", "https://")):
                return await self._http_get(path)
            if self.config.base_url:
                return await self._http_get(self.config.base_url.rstrip("/") + to_absolute_path(path))
            if self._storage is not None:
                return await read_text(self._storage, to_absolute_path(path))
        except FileNotFoundError:
            logger.warning("Companion file not found: %s", path)
            return None
        except Exception:
            logger.warning("Failed to load companion file %s", path, exc_info=True)
            return None

        logger.warning("No base_url or storage configured to load %s", path)
        return None

    async def _http_get(self, url: str) -> str | None:
        if self._http_client is not None:
            response = await self._http_client.get(url, timeout=self.config.fetch_timeout)
        else:
            async with httpx.AsyncClient(timeout=self.config.fetch_timeout) as client:
                response = await client.get(url)

        if not response.is_success:
            logger.warning("Companion fetch %s returned %d", url, response.status_code)
            return None
        return response.text

    async def load_widget_files(
        self,
        files: Mapping[str, str] | RouteFiles | None,
        signal: AbortSignal | None = None,
    ) -> ComponentFiles:
        """Load html/md/css companions concurrently. Missing ones stay ``None``."""
        if not files:
            return ComponentFiles()

        abort.check(signal)
        paths = dict(files.items())
        loaded: dict[str, str | None] = {}

        async def _load(kind: str, path: str) -> None:
            loaded[kind] = await self.load_file(path)

        async with anyio.create_task_group() as tg:
            for kind in ("html", "md", "css"):
                path = paths.get(kind)
                if path:
                    tg.start_soon(_load, kind, path)

        return ComponentFiles(
            html=loaded.get("html"),
            md=loaded.get("md"),
            css=loaded.get("css"),
        )

    async def build_component_context(
        self,
        route_info: RouteInfo,
        route: RouteConfig,
        signal: AbortSignal | None = None,
        *,
        is_leaf: bool = False,
    ) -> ComponentContext:
        """Context for rendering *route* as part of *route_info*'s navigation."""
        files = await self.load_widget_files(route.files, signal)
        return ComponentContext(
            pathname=route_info.pathname,
            pattern=route_info.pattern,
            params=route_info.params,
            search_params=route_info.search_params,
            files=files,
            signal=signal,
            is_leaf=is_leaf,
            base_path=self.config.base_path,
        )

    # -- Events -------------------------------------------------------------

    def add_event_listener(self, listener: RouterEventListener) -> _Unsubscribe:
        """Register *listener*. Call the returned object to remove it."""
        self._listeners[listener] = None
        return _Unsubscribe(self, listener)

    def emit(self, event: RouterEvent) -> None:
        """Deliver *event* to every listener. A failing listener is logged and skipped."""
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.exception("Router event listener failed for %s event", event.type)


class _StorageSourceLoader(importlib.abc.SourceLoader):
    """Loader over module source already read through ``Storage``."""

    def __init__(self, module_path: str, source: str) -> None:
        self.module_path = module_path
        self.source = source

    def get_filename(self, fullname: str) -> str:
        return self.module_path

    def get_data(self, path: str) -> bytes:
        return self.source.encode("utf-8")


def _module_name(module_path: str) -> str:
    return "_warble_module_" + "".join(c if c.isalnum() else "_" for c in module_path)


def _exec_module(module_path: str, source: str) -> Any:
    loader = _StorageSourceLoader(module_path, source)
    spec = importlib.util.spec_from_loader(_module_name(module_path), loader)
    if spec is None:
        msg = f"Cannot create module spec for {module_path!r}"
        raise ImportError(msg)
    return _run(spec)


def _import_file(file: Path) -> Any:
    spec = importlib.util.spec_from_file_location(_module_name(str(file)), file)
    if spec is None or spec.loader is None:
        msg = f"Cannot import {file}"
        raise ImportError(msg)
    return _run(spec)


def _run(spec: importlib.machinery.ModuleSpec) -> Any:
    """Execute *spec* registered in ``sys.modules``, as a normal import would be.

    Dataclasses and typing resolve names through ``sys.modules[cls.__module__]``.
    """
    module = importlib.util.module_from_spec(spec)
    sys.modules[spec.name] = module
    try:
        spec.loader.exec_module(module)  # type: ignore[union-attr]
    except BaseException:
        sys.modules.pop(spec.name, None)
        raise
    return module
