"""Markdown output format, for text clients and LLMs.

Pages render through ``Component.render_markdown``.  Fenced
```` ```widget:name ```` blocks are replaced by the widget's own Markdown;
a block that cannot be resolved becomes an inline error quote.
"""

from __future__ import annotations

import dataclasses
import logging
import re
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from warble._internal.html import status_message
from warble._internal.invoke import invoke
from warble.components.base import Component, ComponentContext
from warble.components.page import MARKDOWN_SLOT
from warble.widgets.parser import ParsedWidget, parse_widget_blocks, replace_occurrences
from warble.widgets.resolve import resolve_widgets

if TYPE_CHECKING:
    from warble.routing.core import RouteCore
    from warble.widgets.registry import WidgetRegistry

logger = logging.getLogger("warble.render")

_SLOT_RE = re.compile(r"```router-slot\n```\n?")


class MarkdownFormat:
    """Render to Markdown.

    Args:
        widgets: Registry used to resolve widget fences. Fences are left
            untouched when omitted.
        max_widget_depth: How deeply widget output may embed further widgets.
    """

    name = "markdown"

    def __init__(
        self,
        *,
        widgets: WidgetRegistry | None = None,
        max_widget_depth: int | None = None,
    ) -> None:
        self.widgets = widgets
        self.max_widget_depth = max_widget_depth

    def inject_slot(self, parent: str, child: str, parent_pattern: str) -> str:
        return parent.replace(MARKDOWN_SLOT, child, 1)

    def strip_slots(self, content: str) -> str:
        return _SLOT_RE.sub("", content).strip()

    async def render_content(
        self,
        component: Component,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext,
        core: RouteCore,
    ) -> str:
        markdown = component.render_markdown(data, params, context)
        if self.widgets is not None:
            markdown = await self.resolve_widget_blocks(markdown, context, core)
        return markdown

    async def resolve_widget_blocks(self, markdown: str, context: ComponentContext, core: RouteCore) -> str:
        """Replace widget fences with rendered widget Markdown, recursively."""
        registry = self.widgets
        if registry is None:
            return markdown

        async def render_one(block: ParsedWidget) -> str | None:
            if block.params is None:
                return f"> **Error** (`{block.name}`): {block.parse_error}"

            widget = registry.get(block.name)
            if widget is None:
                return f"> **Error**: Unknown widget `{block.name}`"
            if context.signal is not None and context.signal.aborted:
                return None

            try:
                problem = widget.validate_params(block.params)
                if problem is not None:
                    return widget.render_markdown_error(ValueError(problem))
                files = await core.load_widget_files(registry.files_for(block.name), context.signal)
                widget_context = dataclasses.replace(context, files=files, is_leaf=False)
                data = await invoke(widget.get_data, block.params, context.signal, widget_context)
                return widget.render_markdown(data, block.params, widget_context)
            except Exception as exc:
                logger.warning("Widget %r failed to render", block.name, exc_info=True)
                try:
                    return widget.render_markdown_error(exc)
                except Exception:
                    logger.warning("Widget %r failed to render its error", block.name, exc_info=True)
                    return f"> **Error** (`{block.name}`): {exc}"

        max_depth = self.max_widget_depth
        if max_depth is None:
            max_depth = core.config.max_widget_depth
        return await resolve_widgets(
            markdown,
            parse_widget_blocks,
            render_one,
            replace_occurrences,
            max_depth=max_depth,
        )

    def render_redirect(self, to: str) -> str:
        return f"Redirect to: {to}"

    def render_status_page(self, status: int, pathname: str) -> str:
        return f"# {status_message(status)}\n\nPath: `{pathname}`"

    def render_error_page(self, error: BaseException, pathname: str) -> str:
        return f"# Error\n\nPath: `{pathname}`\n\n{error}"
