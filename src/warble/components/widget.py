"""Widget component — an embeddable unit resolved by name inside page content.

Pages live in the routes manifest; widgets live in a ``WidgetRegistry``.

Fallback chains, parallel to ``PageComponent``:

- ``render_html``: html file -> md file in ``<mark-down>`` -> base default
- ``render_markdown``: md file -> empty
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from warble._internal.html import escape_html
from warble.components.base import Component, ComponentContext


class WidgetComponent(Component):
    """Base for widgets.

    Usage::

        class PriceWidget(WidgetComponent):
            name = "crypto-price"

            async def get_data(self, params, signal=None, context=None):
                return {"price": await quote(params["coin"])}

            def render_markdown(self, data, params, context=None):
                return f"**{params['coin']}**: {data['price']}"

    Embedded in HTML as ``<widget-crypto-price coin="bitcoin"></widget-crypto-price>``
    and in Markdown as a ```` ```widget:crypto-price ```` fence.
    """

    def render_html(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        files = context.files if context is not None else None
        style = f"<style>{files.css}</style>\n" if files is not None and files.css else ""

        if files is not None and files.html:
            return style + files.html
        if files is not None and files.md:
            return f"{style}<mark-down>{escape_html(files.md)}</mark-down>"
        return style + Component.render_html(self, data, params, context)

    def render_markdown(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        if context is not None and context.files.md:
            return context.files.md
        return ""
