"""Tests for warble.site — bootstrapping a router from storage."""

import pytest

from warble.config import RouterConfig
from warble.rendering import HtmlFormat, MarkdownFormat, SsrRenderer
from warble.routing import write_manifest
from warble.site import load_manifest, load_site
from warble.testing import MemoryStorage

WIDGET_MODULE = """\
from warble.components import WidgetComponent


class Greet(WidgetComponent):
    name = "greet"

    def render_html(self, data, params, context=None):
        return "<b>hi " + params.get("who", "you") + "</b>"

    def render_markdown(self, data, params, context=None):
        return "hi " + params.get("who", "you")


widget = Greet()
"""


def _storage() -> MemoryStorage:
    return MemoryStorage(
        {
            "/routes/index.page.html": '<main><router-slot></router-slot></main>',
            "/routes/about.page.html": '<p>About</p><widget-greet who="ada"></widget-greet>',
            "/routes/team.page.md": '# Team\n\n```widget:greet\n{"who": "bob"}\n```',
            "/widgets/greet/greet.widget.py": WIDGET_MODULE,
        },
    )


class TestLoadManifest:
    @pytest.mark.anyio
    async def test_scans_when_no_manifest(self) -> None:
        manifest, warnings = await load_manifest(_storage(), RouterConfig())
        assert {route.pattern for route in manifest.routes} == {"/", "/about", "/team"}
        assert warnings == ()

    @pytest.mark.anyio
    async def test_prefers_persisted_manifest(self) -> None:
        storage = _storage()
        config = RouterConfig()
        manifest, _ = await load_manifest(storage, config)
        await write_manifest(storage, manifest, config.manifest_path)
        storage.files["/routes/extra.page.md"] = b"# Extra"

        reloaded, _ = await load_manifest(storage, config)
        assert reloaded.routes == manifest.routes


class TestLoadSite:
    @pytest.mark.anyio
    async def test_builtins_and_discovered_widgets(self) -> None:
        site = await load_site(_storage())
        assert {"breadcrumb", "page-title", "greet"} <= {w.name for w in site.widgets}

    @pytest.mark.anyio
    async def test_renders_html_with_widgets(self) -> None:
        site = await load_site(_storage())
        result = await SsrRenderer(site.core, HtmlFormat(widgets=site.widgets)).render("/about")
        assert result.status == 200
        assert result.content.startswith("<main><p>About</p><widget-greet who=\"ada\" data-ssr=")
        assert "<b>hi ada</b></widget-greet></main>" in result.content

    @pytest.mark.anyio
    async def test_renders_markdown_with_widgets(self) -> None:
        site = await load_site(_storage())
        result = await SsrRenderer(site.core, MarkdownFormat(widgets=site.widgets)).render("/team")
        assert result.content == "# Team\n\nhi bob"

    @pytest.mark.anyio
    async def test_missing_widgets_dir(self) -> None:
        storage = MemoryStorage({"/routes/index.page.html": "<h1>Home</h1>"})
        site = await load_site(storage)
        assert len(site.widgets) == 2

    @pytest.mark.anyio
    async def test_custom_dirs(self) -> None:
        storage = MemoryStorage({"/content/pages/index.page.html": "<h1>Home</h1>"})
        config = RouterConfig(routes_dir="/content/pages", widgets_dir="/content/widgets")
        site = await load_site(storage, config)
        result = await SsrRenderer(site.core, HtmlFormat()).render("/")
        assert result.content == "<h1>Home</h1>"
