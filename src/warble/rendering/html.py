"""HTML output format.

Pages render through ``Component.render_html``.  Afterwards:

1. ``<mark-down>`` blocks are expanded by the configured Markdown
   renderer; fenced ``router-slot`` and ``widget:name`` blocks in the
   result become ``<router-slot>`` and ``<widget-name>`` elements.
2. ``<widget-name>`` elements are resolved through the widget registry.
   Each resolved element keeps its attributes and gains ``data-ssr``
   carrying the widget's data as JSON.

Generic status, error and redirect pages are kida templates.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from kida import Environment

from warble._internal.html import SSR_ATTR, status_message, to_json_attr, unescape_html
from warble._internal.invoke import invoke
from warble.components.base import Component, ComponentContext
from warble.markdown.fenced import process_fenced_slots, process_fenced_widgets
from warble.widgets.parser import ParsedWidget, parse_widget_tags, replace_occurrences
from warble.widgets.resolve import resolve_widgets

if TYPE_CHECKING:
    from warble.markdown.renderer import SupportsMarkdown
    from warble.routing.core import RouteCore
    from warble.widgets.registry import WidgetRegistry

logger = logging.getLogger("warble.render")

_SLOT_RE = re.compile(r"<router-slot[^>]*></router-slot>")
_MARKDOWN_BLOCK_RE = re.compile(r"<mark-down>(.*?)</mark-down>", re.DOTALL)

_STATUS_TEMPLATE = """\
<h1>{{ message }}</h1>
<p>Path: {{ pathname }}</p>
"""

_ERROR_TEMPLATE = """\
<h1>Error</h1>
<p>Path: {{ pathname }}</p>
<p>{{ message }}</p>
"""

_REDIRECT_TEMPLATE = '<meta http-equiv="refresh" content="0;url={{ to }}">'


class HtmlFormat:
    """Render to HTML.

    Args:
        widgets: Registry used to resolve ``<widget-*>`` elements. Widgets
            are left untouched when omitted.
        markdown_renderer: Expands ``<mark-down>`` blocks. They are left
            for the client when omitted.
        max_widget_depth: How deeply widget output may embed further widgets.
    """

    name = "html"

    def __init__(
        self,
        *,
        widgets: WidgetRegistry | None = None,
        markdown_renderer: SupportsMarkdown | None = None,
        max_widget_depth: int | None = None,
    ) -> None:
        self.widgets = widgets
        self.markdown_renderer = markdown_renderer
        self.max_widget_depth = max_widget_depth
        env = Environment(autoescape=True)
        self._status_template = env.from_string(_STATUS_TEMPLATE)
        self._error_template = env.from_string(_ERROR_TEMPLATE)
        self._redirect_template = env.from_string(_REDIRECT_TEMPLATE)

    # -- Slots --------------------------------------------------------------

    def inject_slot(self, parent: str, child: str, parent_pattern: str) -> str:
        return _SLOT_RE.sub(lambda _: child, parent, count=1)

    def strip_slots(self, content: str) -> str:
        return _SLOT_RE.sub("", content)

    # -- Content ------------------------------------------------------------

    async def render_content(
        self,
        component: Component,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext,
        core: RouteCore,
    ) -> str:
        html = component.render_html(data, params, context)
        html = self.expand_markdown(html)
        if self.widgets is not None:
            html = await self.resolve_widget_tags(html, context, core)
        return html

    def expand_markdown(self, html: str) -> str:
        """Render every ``<mark-down>`` block to HTML."""
        renderer = self.markdown_renderer
        if renderer is None or "<mark-down>" not in html:
            return html

        def _expand(match: re.Match[str]) -> str:
            rendered = renderer.render(unescape_html(match.group(1)))
            rendered = process_fenced_slots(rendered, unescape_html)
            return process_fenced_widgets(rendered, unescape_html)

        return _MARKDOWN_BLOCK_RE.sub(_expand, html)

    async def resolve_widget_tags(self, html: str, context: ComponentContext, core: RouteCore) -> str:
        """Resolve ``<widget-*>`` elements, including widgets their output embeds."""
        registry = self.widgets
        if registry is None:
            return html

        ssr_data: dict[ParsedWidget, Any] = {}

        async def render_one(tag: ParsedWidget) -> str | None:
            widget = registry.get(tag.name)
            if widget is None:
                return None
            if context.signal is not None and context.signal.aborted:
                return None

            params = tag.params or {}
            try:
                problem = widget.validate_params(params)
                if problem is not None:
                    logger.warning("Widget %r rejected its params: %s", tag.name, problem)
                    return widget.render_error(ValueError(problem), params)
                files = await core.load_widget_files(registry.files_for(tag.name), context.signal)
                widget_context = dataclasses.replace(context, files=files, is_leaf=False)
                data = await invoke(widget.get_data, params, context.signal, widget_context)
                rendered = widget.render_html(data, params, widget_context)
            except Exception:
                logger.warning("Widget %r failed to render; leaving it for the client", tag.name, exc_info=True)
                return None

            ssr_data[tag] = data
            return self.expand_markdown(rendered)

        def wrap(content: str, resolved: Mapping[ParsedWidget, str]) -> str:
            return replace_occurrences(
                content,
                {tag: _ssr_element(tag, inner, ssr_data.get(tag)) for tag, inner in resolved.items()},
            )

        return await resolve_widgets(
            html,
            parse_widget_tags,
            render_one,
            wrap,
            max_depth=self._max_depth(core),
        )

    def _max_depth(self, core: RouteCore) -> int:
        if self.max_widget_depth is not None:
            return self.max_widget_depth
        return core.config.max_widget_depth

    # -- Fallback pages -----------------------------------------------------

    def render_redirect(self, to: str) -> str:
        return self._redirect_template.render({"to": to})

    def render_status_page(self, status: int, pathname: str) -> str:
        return self._status_template.render({"message": status_message(status), "pathname": pathname})

    def render_error_page(self, error: BaseException, pathname: str) -> str:
        return self._error_template.render({"message": str(error), "pathname": pathname})


def _ssr_element(tag: ParsedWidget, inner: str, data: Any) -> str:
    name = f"widget-{tag.name}"
    attrs = f" {tag.attrs}" if tag.attrs else ""
    return f'<{name}{attrs} {SSR_ATTR}="{to_json_attr(data)}">{inner}</{name}>'
