"""Site bootstrap: everything needed to render, built from one storage.

Usage::

    site = await load_site(storage, RouterConfig(base_path="/html"))
    html = SsrRenderer(site.core, HtmlFormat(widgets=site.widgets))
    md = SsrRenderer(site.core, MarkdownFormat(widgets=site.widgets))

A manifest previously written to ``config.manifest_path`` is reused;
otherwise ``config.routes_dir`` is scanned.  Widgets under
``config.widgets_dir`` join the built-in widgets.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import httpx

from warble.config import RouterConfig
from warble.routing.core import RouteCore
from warble.routing.manifest import read_manifest
from warble.routing.scanner import discover_widgets, generate_routes_manifest
from warble.routing.types import RoutesManifest
from warble.storage import Storage, exists
from warble.widgets.builtin import builtin_widgets
from warble.widgets.registry import WidgetRegistry, load_widgets

logger = logging.getLogger("warble.routing")


@dataclass(frozen=True, slots=True)
class Site:
    """A route core and the widget registry its formats resolve against."""

    core: RouteCore
    widgets: WidgetRegistry
    warnings: tuple[str, ...] = ()


async def load_manifest(storage: Storage, config: RouterConfig) -> tuple[RoutesManifest, tuple[str, ...]]:
    """The persisted manifest if one exists, else a fresh scan with its warnings."""
    if await exists(storage, config.manifest_path):
        logger.debug("Using routes manifest %s", config.manifest_path)
        return await read_manifest(storage, config.manifest_path), ()

    result = await generate_routes_manifest(config.routes_dir, storage)
    return result.manifest, result.warnings


async def load_site(
    storage: Storage,
    config: RouterConfig | None = None,
    *,
    http_client: httpx.AsyncClient | None = None,
) -> Site:
    """Build a ``Site`` from *storage*.

    A missing widgets directory only means there are no custom widgets.
    """
    config = config or RouterConfig()
    manifest, warnings = await load_manifest(storage, config)
    core = RouteCore(manifest, config, storage=storage, http_client=http_client)

    registry = WidgetRegistry(builtin_widgets())
    try:
        entries = await discover_widgets(config.widgets_dir, storage, path_prefix=config.widgets_dir)
    except FileNotFoundError:
        logger.debug("No widgets directory at %s", config.widgets_dir)
    else:
        await load_widgets(core, entries, registry)

    return Site(core=core, widgets=registry, warnings=warnings)
