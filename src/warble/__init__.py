"""Warble — file-based routing and server-side rendering for content sites.

A directory of ``.page.py``, ``.page.html`` and ``.page.md`` files becomes a
route table.  Each request renders the matched route's layout hierarchy to
HTML for browsers or Markdown for text clients and LLMs, resolving embedded
widgets on the way.

Basic usage::

    from warble import HtmlFormat, RouteCore, SsrRenderer, generate_routes_manifest

    result = await generate_routes_manifest("/routes", storage)
    core = RouteCore(result.manifest, storage=storage)
    renderer = SsrRenderer(core, HtmlFormat())

    page = await renderer.render("/projects/42")
    page.status, page.title, page.content

Markdown expansion inside HTML (``pip install warble[markdown]``)::

    from warble.markdown import MarkdownRenderer
    HtmlFormat(markdown_renderer=MarkdownRenderer())
"""

__version__ = "0.1.0-dev"

# Public name -> (module, attribute)
_LAZY_IMPORTS: dict[str, tuple[str, str]] = {
    "AbortSignal": ("warble.abort", "AbortSignal"),
    "Component": ("warble.components", "Component"),
    "ComponentContext": ("warble.components", "ComponentContext"),
    "ConfigurationError": ("warble.errors", "ConfigurationError"),
    "HTTPError": ("warble.errors", "HTTPError"),
    "HtmlFormat": ("warble.rendering", "HtmlFormat"),
    "MarkdownFormat": ("warble.rendering", "MarkdownFormat"),
    "MissingDependencyError": ("warble.errors", "MissingDependencyError"),
    "ModuleLoadError": ("warble.errors", "ModuleLoadError"),
    "NotFound": ("warble.errors", "NotFound"),
    "PageComponent": ("warble.components", "PageComponent"),
    "QueryParams": ("warble.query", "QueryParams"),
    "RenderResult": ("warble.rendering", "RenderResult"),
    "RouteCore": ("warble.routing", "RouteCore"),
    "RouterConfig": ("warble.config", "RouterConfig"),
    "RouterEvent": ("warble.routing", "RouterEvent"),
    "RoutesManifest": ("warble.routing", "RoutesManifest"),
    "Site": ("warble.site", "Site"),
    "SsrRenderer": ("warble.rendering", "SsrRenderer"),
    "Storage": ("warble.storage", "Storage"),
    "UnsafeRedirect": ("warble.errors", "UnsafeRedirect"),
    "WarbleError": ("warble.errors", "WarbleError"),
    "WidgetComponent": ("warble.components", "WidgetComponent"),
    "WidgetRegistry": ("warble.widgets", "WidgetRegistry"),
    "discover_widgets": ("warble.routing", "discover_widgets"),
    "generate_routes_manifest": ("warble.routing", "generate_routes_manifest"),
    "load_site": ("warble.site", "load_site"),
    "render_url": ("warble.rendering", "render_url"),
}

__all__ = sorted(_LAZY_IMPORTS)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import warble`` fast while providing a clean top-level API.
    """
    target = _LAZY_IMPORTS.get(name)
    if target is None:
        msg = f"module {__name__!r} has no attribute {name!r}"
        raise AttributeError(msg)

    import importlib

    module_name, attr = target
    return getattr(importlib.import_module(module_name), attr)
