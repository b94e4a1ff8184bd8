"""Tests for warble.rendering.pipeline — the shared render state machine."""

import logging

import anyio
import pytest

from warble.abort import AbortSignal
from warble.components import PageComponent, WidgetComponent
from warble.config import RouterConfig
from warble.errors import HTTPError, UnsafeRedirect
from warble.rendering import HtmlFormat, MarkdownFormat, RenderResult, assert_safe_redirect, render_url
from warble.routing.core import RouteCore
from warble.routing.types import RouterEvent
from warble.testing import MemoryStorage, module, scan, with_loaders
from warble.widgets import WidgetRegistry


async def _site(files: dict[str, str], loaders=None, config: RouterConfig | None = None) -> RouteCore:
    result = await scan(files)
    manifest = with_loaders(result.manifest, loaders or {})
    return RouteCore(manifest, config, storage=MemoryStorage(files))


async def _render(core: RouteCore, url: str, fmt=None, signal=None) -> RenderResult:
    return await render_url(core, fmt or HtmlFormat(), url, signal=signal)


class StaticPage(PageComponent):
    def __init__(self, html: str, title: str | None = None) -> None:
        self.html = html
        self.title = title

    def render_html(self, data, params, context=None) -> str:
        return self.html

    def get_title(self, data, params, context=None) -> str | None:
        return self.title


class FailingPage(PageComponent):
    def __init__(self, error: Exception) -> None:
        self.error = error

    async def get_data(self, params, signal=None, context=None):
        raise self.error


class ProjectPage(PageComponent):
    async def get_data(self, params, signal=None, context=None):
        return {"id": params["id"]}

    def render_html(self, data, params, context=None) -> str:
        return f"<h1>Project {data['id']}</h1>"

    def get_title(self, data, params, context=None) -> str | None:
        return f"Project {data['id']}"


class TestPageComposition:
    @pytest.mark.anyio
    async def test_child_nested_in_root_slot(self) -> None:
        core = await _site({"/routes/index.page.md": "# Home", "/routes/about.page.md": "# About"})
        result = await _render(core, "/about")

        assert result.status == 200
        assert core.build_route_hierarchy("/about") == ["/", "/about"]
        assert result.content.index("# Home") < result.content.index("# About")
        assert "<router-slot" not in result.content

    @pytest.mark.anyio
    async def test_markdown_format_nests_through_slot_fence(self) -> None:
        core = await _site(
            {
                "/routes/index.page.md": "# Home\n\n```router-slot\n```",
                "/routes/about.page.md": "# About",
            },
        )
        result = await _render(core, "/about", MarkdownFormat())
        assert result.status == 200
        assert result.content == "# Home\n\n# About"

    @pytest.mark.anyio
    async def test_params_reach_component(self) -> None:
        core = await _site(
            {"/routes/projects/[id].page.py": ""},
            {"/routes/projects/[id].page.py": lambda: module(page=ProjectPage())},
        )
        result = await _render(core, "/projects/42")

        assert result.status == 200
        assert core.current_route.params["id"] == "42"
        assert core.get_params() == {"id": "42"}
        assert result.content == "<h1>Project 42</h1>"
        assert result.title == "Project 42"

    @pytest.mark.anyio
    async def test_directory_index_catches_deep_paths(self) -> None:
        core = await _site({"/routes/docs/index.page.md": "Docs"})
        result = await _render(core, "/docs/anything/deep")

        assert result.status == 200
        assert core.current_route.route.pattern == "/docs/:rest*"
        assert core.current_route.params["rest"] == "anything/deep"
        assert result.content.count("Docs") == 1

    @pytest.mark.anyio
    async def test_deepest_title_wins(self) -> None:
        loaders = {
            "/routes/index.page.py": lambda: module(page=StaticPage("<router-slot></router-slot>", "Site")),
            "/routes/a.page.py": lambda: module(page=StaticPage("<p>a</p>", "Page A")),
            "/routes/b.page.py": lambda: module(page=StaticPage("<p>b</p>")),
        }
        core = await _site(
            {"/routes/index.page.py": "", "/routes/a.page.py": "", "/routes/b.page.py": ""},
            loaders,
        )
        assert (await _render(core, "/a")).title == "Page A"
        assert (await _render(core, "/b")).title == "Site"

    @pytest.mark.anyio
    async def test_segments_fetch_concurrently(self) -> None:
        child_started = anyio.Event()

        class WaitingRoot(StaticPage):
            async def get_data(self, params, signal=None, context=None):
                await child_started.wait()

        class Child(StaticPage):
            async def get_data(self, params, signal=None, context=None):
                child_started.set()

        core = await _site(
            {"/routes/index.page.py": "", "/routes/child.page.py": ""},
            {
                "/routes/index.page.py": lambda: module(page=WaitingRoot("<router-slot></router-slot>")),
                "/routes/child.page.py": lambda: module(page=Child("<p>child</p>")),
            },
        )
        with anyio.fail_after(2):
            result = await _render(core, "/child")
        assert result.content == "<p>child</p>"

    @pytest.mark.anyio
    async def test_missing_slot_warns(self, caplog: pytest.LogCaptureFixture) -> None:
        core = await _site({"/routes/index.page.html": "<h1>Home</h1>", "/routes/about.page.html": "<p>About</p>"})
        with caplog.at_level(logging.WARNING, logger="warble.render"):
            result = await _render(core, "/about")
        assert result.content == "<h1>Home</h1>"
        assert "no slot" in caplog.text

    @pytest.mark.anyio
    async def test_base_path_stripped(self) -> None:
        core = await _site({"/routes/about.page.html": "<p>About</p>"}, config=RouterConfig(base_path="/html"))
        result = await _render(core, "/html/about")
        assert result.status == 200
        assert result.content == "<p>About</p>"


class TestStatusPages:
    @pytest.mark.anyio
    async def test_generic_404(self) -> None:
        core = await _site({"/routes/about.page.html": ""})
        result = await _render(core, "/missing")
        assert result.status == 404
        assert "Not Found" in result.content
        assert "/missing" in result.content

    @pytest.mark.anyio
    async def test_registered_404_page(self) -> None:
        core = await _site({"/routes/404.page.html": "<h1>Gone fishing</h1>"})
        result = await _render(core, "/missing")
        assert result.status == 404
        assert result.content == "<h1>Gone fishing</h1>"

    @pytest.mark.anyio
    async def test_broken_404_page_falls_back(self) -> None:
        core = await _site(
            {"/routes/404.page.py": ""},
            {"/routes/404.page.py": lambda: module(page=FailingPage(RuntimeError("boom")))},
        )
        result = await _render(core, "/missing")
        assert result.status == 404
        assert "Not Found" in result.content

    @pytest.mark.anyio
    async def test_http_error_uses_status_page(self) -> None:
        core = await _site(
            {"/routes/secret.page.py": "", "/routes/403.page.html": "<h1>Members only</h1>"},
            {"/routes/secret.page.py": lambda: module(page=FailingPage(HTTPError(403)))},
        )
        result = await _render(core, "/secret")
        assert result.status == 403
        assert result.content == "<h1>Members only</h1>"

    @pytest.mark.anyio
    async def test_http_error_without_status_page(self) -> None:
        core = await _site(
            {"/routes/secret.page.py": ""},
            {"/routes/secret.page.py": lambda: module(page=FailingPage(HTTPError(410)))},
        )
        result = await _render(core, "/secret", MarkdownFormat())
        assert result.status == 410
        assert result.content == "# Gone\n\nPath: `/secret`"


class TestErrorRecovery:
    FILES = {
        "/routes/admin/crash.page.py": "",
        "/routes/admin/admin.error.py": "",
        "/routes/index.error.py": "",
        "/routes/crash.page.py": "",
    }

    def _loaders(self, boundary=None, handler=None) -> dict:
        failing = lambda: module(page=FailingPage(RuntimeError("x")))  # noqa: E731
        return {
            "/routes/admin/crash.page.py": failing,
            "/routes/crash.page.py": failing,
            "/routes/admin/admin.error.py": boundary or (lambda: module(page=StaticPage("<p>admin boundary</p>"))),
            "/routes/index.error.py": handler or (lambda: module(page=StaticPage("<p>global handler</p>"))),
        }

    @pytest.mark.anyio
    async def test_nearest_boundary(self) -> None:
        core = await _site(self.FILES, self._loaders())
        result = await _render(core, "/admin/crash")
        assert result.status == 500
        assert result.content == "<p>admin boundary</p>"

    @pytest.mark.anyio
    async def test_global_handler_outside_boundary(self) -> None:
        core = await _site(self.FILES, self._loaders())
        result = await _render(core, "/crash")
        assert result.status == 500
        assert result.content == "<p>global handler</p>"

    @pytest.mark.anyio
    async def test_failing_boundary_falls_through_to_handler(self) -> None:
        broken = lambda: module(page=FailingPage(RuntimeError("boundary broke")))  # noqa: E731
        core = await _site(self.FILES, self._loaders(boundary=broken))
        result = await _render(core, "/admin/crash")
        assert result.status == 500
        assert result.content == "<p>global handler</p>"

    @pytest.mark.anyio
    async def test_everything_failing_renders_fallback(self) -> None:
        broken = lambda: module(page=FailingPage(RuntimeError("broke")))  # noqa: E731
        core = await _site(self.FILES, self._loaders(boundary=broken, handler=broken))
        result = await _render(core, "/admin/crash", MarkdownFormat())
        assert result.status == 500
        assert result.content == "# Error\n\nPath: `/admin/crash`\n\nx"

    @pytest.mark.anyio
    async def test_module_without_page_is_an_error(self) -> None:
        core = await _site({"/routes/odd.page.py": ""}, {"/routes/odd.page.py": lambda: module()})
        result = await _render(core, "/odd")
        assert result.status == 500

    @pytest.mark.anyio
    async def test_raising_widget_validation_does_not_fail_page(self) -> None:
        class StrictWidget(WidgetComponent):
            name = "strict"

            def validate_params(self, params):
                raise ValueError("bad params")

        widgets = WidgetRegistry([StrictWidget()])
        core = await _site(
            {
                "/routes/about.page.html": "<p>About</p><widget-strict></widget-strict>",
                "/routes/team.page.md": "# Team\n\n```widget:strict\n```",
            },
        )

        html = await _render(core, "/about", HtmlFormat(widgets=widgets))
        assert html.status == 200
        assert html.content == "<p>About</p><widget-strict></widget-strict>"

        md = await _render(core, "/team", MarkdownFormat(widgets=widgets))
        assert md.status == 200
        assert md.content == "# Team\n\n> **Error** (`strict`): bad params"


class TestRedirects:

    @pytest.mark.anyio
    async def test_redirect_module(self) -> None:
        core = await _site({"/routes/old.redirect.py": "to = '/new'\nstatus = 302\n"})
        result = await _render(core, "/old")
        assert result.status == 302
        assert result.redirect == "/new"

    @pytest.mark.anyio
    async def test_default_status(self) -> None:
        core = await _site({"/routes/old.redirect.py": "to = '/new'\n"})
        result = await _render(core, "/old", MarkdownFormat())
        assert result.status == 301
        assert result.content == "Redirect to: /new"

    @pytest.mark.anyio
    async def test_unsafe_redirect_raises(self) -> None:
        core = await _site({"/routes/evil.redirect.py": "to = 'javascript:alert(1)'\n"})
        with pytest.raises(UnsafeRedirect):
            await _render(core, "/evil")

    @pytest.mark.parametrize(
        "target",
        ["javascript:alert(1)", " JavaScript:alert(1)", "java\tscript:x", "DATA:text/html,x", "vbscript:x"],
    )
    def test_assert_safe_redirect_rejects(self, target: str) -> None:
        with pytest.raises(UnsafeRedirect):
            assert_safe_redirect(target)

    @pytest.mark.parametrize("target", ["/new", "https://example.com/x", "/javascript:thing"])
    def test_assert_safe_redirect_allows(self, target: str) -> None:
        assert_safe_redirect(target)

    @pytest.mark.anyio
    async def test_trailing_slash_redirect_keeps_query(self) -> None:
        core = await _site({"/routes/about.page.html": "<p>About</p>"})
        result = await _render(core, "/about/?tab=team")
        assert result.status == 301
        assert result.redirect == "/about?tab=team"

    @pytest.mark.anyio
    async def test_trailing_slash_redirect_disabled(self) -> None:
        core = await _site(
            {"/routes/about.page.html": "<p>About</p>"},
            config=RouterConfig(redirect_trailing_slash=False),
        )
        result = await _render(core, "/about/")
        assert result.status == 200


class TestAbort:
    @pytest.mark.anyio
    async def test_aborted_before_start(self) -> None:
        core = await _site({"/routes/about.page.html": "<p>About</p>"})
        events: list[RouterEvent] = []
        core.add_event_listener(events.append)
        signal = AbortSignal()
        signal.abort()

        result = await _render(core, "/about", signal=signal)
        assert result == RenderResult(status=499, content="", aborted=True)
        assert events == []

    @pytest.mark.anyio
    async def test_aborted_during_data_fetch(self) -> None:
        signal = AbortSignal()

        class AbortingPage(StaticPage):
            async def get_data(self, params, signal=None, context=None):
                signal.abort("client left")
                return {}

        core = await _site(
            {"/routes/slow.page.py": ""},
            {"/routes/slow.page.py": lambda: module(page=AbortingPage("<p>slow</p>"))},
        )
        events: list[RouterEvent] = []
        core.add_event_listener(events.append)

        result = await _render(core, "/slow", signal=signal)
        assert result.aborted is True
        assert result.status == 499
        assert events == []
        assert core.current_route is None
        assert core.get_params() == {}


class TestEvents:
    @pytest.mark.anyio
    async def test_load_event_on_success(self) -> None:
        core = await _site(
            {"/routes/projects/[id].page.py": ""},
            {"/routes/projects/[id].page.py": lambda: module(page=ProjectPage())},
        )
        events: list[RouterEvent] = []
        core.add_event_listener(events.append)
        await _render(core, "/projects/7")
        assert [(e.type, e.pathname, dict(e.params)) for e in events] == [("load", "/projects/7", {"id": "7"})]

    @pytest.mark.anyio
    async def test_error_event_on_recovery(self) -> None:
        error = RuntimeError("x")
        core = await _site(
            {"/routes/crash.page.py": ""},
            {"/routes/crash.page.py": lambda: module(page=FailingPage(error))},
        )
        events: list[RouterEvent] = []
        core.add_event_listener(events.append)
        await _render(core, "/crash")
        assert len(events) == 1
        assert events[0].type == "error"
        assert events[0].error is error

    @pytest.mark.anyio
    async def test_no_event_for_not_found(self) -> None:
        core = await _site({"/routes/about.page.html": ""})
        events: list[RouterEvent] = []
        core.add_event_listener(events.append)
        await _render(core, "/missing")
        assert events == []
