"""The render pipeline — one URL in, one ``RenderResult`` out.

Every output format shares this state machine::

    render_url(core, fmt, url)
      ├─ trailing slash       -> 301 to the canonical path
      ├─ no match             -> 404 status page, else the format's 404
      ├─ redirect route       -> safety check, then status (default 301)
      ├─ page route           -> render every hierarchy segment concurrently,
      │                          then compose parent slots from the root down
      ├─ HTTPError raised     -> status page for that status
      └─ any other exception  -> error boundary, global handler, fallback (500)

Formats only decide how content is produced and how slots are filled;
see ``RenderFormat``.

``render_url`` never raises for a render failure.  The single exception
is ``UnsafeRedirect``: a redirect to a ``javascript:``/``data:``/
``vbscript:`` target is a content bug and propagates to the caller.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Literal, Protocol

import anyio

from warble import abort
from warble._internal.invoke import invoke
from warble.components.base import Component, ComponentContext
from warble.components.page import default_page
from warble.errors import HTTPError, ModuleLoadError, RenderAborted, UnsafeRedirect
from warble.query import QueryParams
from warble.routing.core import RouteCore, default_root_route
from warble.routing.matcher import split_url
from warble.routing.types import MatchedRoute, RouteConfig, RouteInfo, RouterEvent

if TYPE_CHECKING:
    from warble.abort import AbortSignal

logger = logging.getLogger("warble.render")

# Returned when the abort signal fires; no response is sent for it.
ABORTED_STATUS = 499

_UNSAFE_SCHEMES = ("javascript:", "data:", "vbscript:")


@dataclass(frozen=True, slots=True)
class RenderResult:
    """Outcome of rendering one URL.

    Attributes:
        status: HTTP status code.
        content: Rendered body in the format's output language.
        title: Page title from the deepest segment that declared one.
        redirect: Target URL for redirects.
        aborted: The render was cancelled; ``content`` is empty.
    """

    status: int
    content: str
    title: str | None = None
    redirect: str | None = None
    aborted: bool = False


@dataclass(frozen=True, slots=True)
class SegmentContent:
    content: str
    title: str | None = None


class RenderFormat(Protocol):
    """What an output format supplies to the shared pipeline."""

    name: str

    def inject_slot(self, parent: str, child: str, parent_pattern: str) -> str:
        """Put *child* into the first unfilled slot of *parent*."""
        ...

    def strip_slots(self, content: str) -> str:
        """Remove every slot placeholder left unfilled."""
        ...

    async def render_content(
        self,
        component: Component,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext,
        core: RouteCore,
    ) -> str:
        """Render one component, including any widgets it embeds."""
        ...

    def render_redirect(self, to: str) -> str: ...

    def render_status_page(self, status: int, pathname: str) -> str: ...

    def render_error_page(self, error: BaseException, pathname: str) -> str: ...


def assert_safe_redirect(target: str) -> None:
    """Raise ``UnsafeRedirect`` if *target* uses a script-capable scheme.

    Whitespace and control characters are ignored, as browsers ignore
    them when parsing the scheme.
    """
    cleaned = "".join(c for c in target if c > " " and c != "\x7f").lower()
    if cleaned.startswith(_UNSAFE_SCHEMES):
        raise UnsafeRedirect(target)


async def render_url(
    core: RouteCore,
    fmt: RenderFormat,
    url: str,
    *,
    signal: AbortSignal | None = None,
) -> RenderResult:
    """Render *url* with *fmt*.

    Emits a ``load`` event after a successful page render and an ``error``
    event after recovering from a failure.  An aborted render emits
    nothing and returns status 499 with empty content.
    """
    pathname, query = split_url(url)

    if core.config.redirect_trailing_slash:
        canonical = core.normalize_url(pathname)
        if canonical != pathname:
            target = f"{canonical}?{query}" if query else canonical
            logger.debug("Redirecting %s -> %s", pathname, target)
            return RenderResult(status=301, content="", redirect=target)

    pathname = _strip_base_path(pathname, core.config.base_path)

    try:
        result, event, matched = await _dispatch(core, fmt, pathname, query, signal)
    except RenderAborted:
        return _aborted(pathname)

    if signal is not None and signal.aborted:
        return _aborted(pathname)

    if matched is not None:
        core.current_route = matched
    if event is not None:
        core.emit(event)
    return result


def _aborted(pathname: str) -> RenderResult:
    logger.debug("Render of %s aborted", pathname)
    return RenderResult(status=ABORTED_STATUS, content="", aborted=True)


def _strip_base_path(pathname: str, base_path: str) -> str:
    if base_path and (pathname == base_path or pathname.startswith(base_path + "/")):
        return pathname[len(base_path):] or "/"
    return pathname


async def _dispatch(
    core: RouteCore,
    fmt: RenderFormat,
    pathname: str,
    query: str,
    signal: AbortSignal | None,
) -> tuple[RenderResult, RouterEvent | None, MatchedRoute | None]:
    abort.check(signal)
    search_params = QueryParams(query)
    matched = core.match(f"{pathname}?{query}" if query else pathname)

    if matched is None:
        logger.debug("No route for %s", pathname)
        return await _render_status(core, fmt, 404, pathname, search_params, signal), None, None

    route_info = core.to_route_info(matched, pathname)

    try:
        if matched.route.type == "redirect":
            return await _render_redirect(core, fmt, matched.route), None, matched
        content, title = await _render_page(core, fmt, route_info, matched, signal)
    except (RenderAborted, UnsafeRedirect):
        raise
    except HTTPError as exc:
        logger.debug("%s raised %s", pathname, exc)
        event = RouterEvent(type="error", pathname=pathname, params=matched.params, error=exc)
        return await _render_status(core, fmt, exc.status, pathname, search_params, signal), event, matched
    except Exception as exc:
        abort.check(signal)
        logger.exception("Error rendering %s", pathname)
        event = RouterEvent(type="error", pathname=pathname, params=matched.params, error=exc)
        return await _recover(core, fmt, exc, route_info, signal), event, matched

    result = RenderResult(status=200, content=content, title=title)
    return result, RouterEvent(type="load", pathname=pathname, params=matched.params), matched


async def _render_redirect(core: RouteCore, fmt: RenderFormat, route: RouteConfig) -> RenderResult:
    module = await core.load_module(route.module_path)
    to = getattr(module, "to", None)
    if not isinstance(to, str):
        msg = f"Redirect module {route.module_path!r} does not define 'to'"
        raise ModuleLoadError(msg)

    assert_safe_redirect(to)
    status = getattr(module, "status", None) or 301
    return RenderResult(status=status, content=fmt.render_redirect(to), redirect=to)


async def _render_page(
    core: RouteCore,
    fmt: RenderFormat,
    route_info: RouteInfo,
    matched: MatchedRoute,
    signal: AbortSignal | None,
) -> tuple[str, str | None]:
    hierarchy = core.build_route_hierarchy(route_info.pattern)

    segments: list[tuple[RouteConfig, bool]] = []
    for index, pattern in enumerate(hierarchy):
        route = core.matcher.find_route(pattern)
        if route is None and pattern == core.root:
            route = default_root_route(core.root)
        if route is None:
            continue
        # A wildcard route can match its own parent path; render it once.
        if route is matched.route and pattern != matched.route.pattern:
            continue
        segments.append((route, index == len(hierarchy) - 1))

    rendered: list[SegmentContent | None] = [None] * len(segments)
    failures: list[Exception | None] = [None] * len(segments)

    async def _run(index: int, route: RouteConfig, is_leaf: bool) -> None:
        try:
            rendered[index] = await _render_segment(core, fmt, route_info, route, signal, is_leaf=is_leaf)
        except Exception as exc:
            failures[index] = exc

    async with anyio.create_task_group() as tg:
        for index, (route, is_leaf) in enumerate(segments):
            tg.start_soon(_run, index, route, is_leaf)

    for failure in failures:
        if failure is not None:
            raise failure

    composed = ""
    title: str | None = None
    parent_pattern = ""
    completed = [segment for segment in rendered if segment is not None]
    for (route, _), segment in zip(segments, completed, strict=True):
        if segment.title:
            title = segment.title

        if not composed:
            composed = segment.content
        else:
            injected = fmt.inject_slot(composed, segment.content, parent_pattern)
            if injected == composed:
                logger.warning(
                    "Route %r has no slot for child route %r to render into",
                    parent_pattern,
                    route.pattern,
                )
            composed = injected
        parent_pattern = route.pattern

    return fmt.strip_slots(composed), title


async def _load_component(core: RouteCore, module_path: str) -> Component:
    module = await core.load_module(module_path)
    if isinstance(module, Component):
        return module
    component = getattr(module, "page", None)
    if not isinstance(component, Component):
        msg = f"Module {module_path!r} does not expose a 'page' component"
        raise ModuleLoadError(msg)
    return component


async def _render_segment(
    core: RouteCore,
    fmt: RenderFormat,
    route_info: RouteInfo,
    route: RouteConfig,
    signal: AbortSignal | None,
    *,
    is_leaf: bool = False,
) -> SegmentContent:
    """Load, fetch data for, and render one route of the hierarchy."""
    abort.check(signal)
    module_path = route.files.py if route.files is not None else None
    component = await _load_component(core, module_path) if module_path else default_page

    context = await core.build_component_context(route_info, route, signal, is_leaf=is_leaf)
    params = route_info.params
    data = await invoke(component.get_data, params, signal, context)
    abort.check(signal)

    content = await fmt.render_content(component, data, params, context, core)
    get_title = getattr(component, "get_title", None)
    title = get_title(data, params, context) if get_title is not None else None
    return SegmentContent(content=content, title=title)


async def _render_status(
    core: RouteCore,
    fmt: RenderFormat,
    status: int,
    pathname: str,
    search_params: QueryParams,
    signal: AbortSignal | None,
) -> RenderResult:
    """The registered status page for *status*, or the format's generic page."""
    page = core.matcher.get_status_page(status)
    if page is not None:
        route_info = RouteInfo(pathname=pathname, pattern=page.pattern, params={}, search_params=search_params)
        try:
            segment = await _render_segment(core, fmt, route_info, page, signal, is_leaf=True)
        except RenderAborted:
            raise
        except Exception:
            logger.exception("Failed to render %d status page for %s", status, pathname)
        else:
            return RenderResult(status=status, content=fmt.strip_slots(segment.content), title=segment.title)

    return RenderResult(status=status, content=fmt.render_status_page(status, pathname))


async def _recover(
    core: RouteCore,
    fmt: RenderFormat,
    error: Exception,
    route_info: RouteInfo,
    signal: AbortSignal | None,
) -> RenderResult:
    """Render a 500 through the nearest boundary, the global handler, or the fallback."""
    pathname = route_info.pathname

    boundary = core.matcher.find_error_boundary(pathname)
    if boundary is not None:
        content = await _try_error_module(core, fmt, boundary.module_path, route_info, signal, "boundary")
        if content is not None:
            return RenderResult(status=500, content=content)

    handler = core.matcher.get_error_handler()
    if handler is not None:
        content = await _try_error_module(core, fmt, handler.module_path, route_info, signal, "handler")
        if content is not None:
            return RenderResult(status=500, content=content)

    return RenderResult(status=500, content=fmt.render_error_page(error, pathname))


async def _try_error_module(
    core: RouteCore,
    fmt: RenderFormat,
    module_path: str,
    route_info: RouteInfo,
    signal: AbortSignal | None,
    kind: Literal["boundary", "handler"],
) -> str | None:
    """Render an error module's page. ``None`` if it fails."""
    try:
        component = await _load_component(core, module_path)
        context = ComponentContext(
            pathname=route_info.pathname,
            search_params=route_info.search_params,
            signal=signal,
            base_path=core.config.base_path,
        )
        data = await invoke(component.get_data, {}, signal, context)
        content = await fmt.render_content(component, data, {}, context, core)
    except RenderAborted:
        raise
    except Exception:
        logger.exception("Error %s %s failed for %s", kind, module_path, route_info.pathname)
        return None
    return fmt.strip_slots(content)


class SsrRenderer:
    """A ``RouteCore`` paired with one output format.

    Usage::

        renderer = SsrRenderer(RouteCore(manifest), HtmlFormat(widgets=registry))
        result = await renderer.render("/projects/42")
        result.status, result.content, result.title
    """

    def __init__(self, core: RouteCore, fmt: RenderFormat) -> None:
        self.core = core
        self.format = fmt

    async def render(self, url: str, signal: AbortSignal | None = None) -> RenderResult:
        return await render_url(self.core, self.format, url, signal=signal)
