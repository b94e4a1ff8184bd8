"""Built-in widgets available to every site.

``breadcrumb``
    Navigation trail for the current path::

        <widget-breadcrumb separator=" / "></widget-breadcrumb>

``page-title``
    Declares a title from html or md pages without a page module.
    Renders nothing::

        <widget-page-title title="About Us"></widget-page-title>
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING, Any, ClassVar

from warble._internal.html import escape_html
from warble.components.widget import WidgetComponent

if TYPE_CHECKING:
    from warble.abort import AbortSignal
    from warble.components.base import ComponentContext

HTML_SEPARATOR = " › "
MARKDOWN_SEPARATOR = " > "


def _label(segment: str) -> str:
    return segment[:1].upper() + segment[1:].replace("-", " ")


class BreadcrumbWidget(WidgetComponent):
    name: ClassVar[str] = "breadcrumb"

    async def get_data(
        self,
        params: Mapping[str, Any],
        signal: AbortSignal | None = None,
        context: ComponentContext | None = None,
    ) -> dict[str, Any]:
        base = context.base_path if context is not None else ""
        pathname = context.pathname if context is not None and context.pathname else base + "/"

        if base and pathname.startswith(base):
            pathname = pathname[len(base):] or "/"

        segments = [{"label": "Home", "href": base + "/"}]
        href = base
        for part in pathname.split("/"):
            if not part:
                continue
            href += "/" + part
            segments.append({"label": _label(part), "href": href})
        return {"segments": segments}

    def render_html(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        if not data or not data.get("segments"):
            return ""

        separator = str(params.get("separator", HTML_SEPARATOR))
        segments = data["segments"]
        items = []
        for i, segment in enumerate(segments):
            label = escape_html(segment["label"])
            if i == len(segments) - 1:
                items.append(f'<span aria-current="page">{label}</span>')
            else:
                items.append(f'<a href="{escape_html(segment["href"])}">{label}</a>')
        return f'<nav aria-label="Breadcrumb">{escape_html(separator).join(items)}</nav>'

    def render_markdown(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        if not data or not data.get("segments"):
            return ""

        separator = str(params.get("separator", MARKDOWN_SEPARATOR))
        segments = data["segments"]
        items = [f"[{s['label']}]({s['href']})" for s in segments[:-1]]
        items.append(f"**{segments[-1]['label']}**")
        return separator.join(items)


class PageTitleWidget(WidgetComponent):
    name: ClassVar[str] = "page-title"

    async def get_data(
        self,
        params: Mapping[str, Any],
        signal: AbortSignal | None = None,
        context: ComponentContext | None = None,
    ) -> dict[str, Any]:
        return {"title": params.get("title")}

    def render_html(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        return ""

    def render_markdown(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        return ""

    def validate_params(self, params: Mapping[str, Any]) -> str | None:
        title = params.get("title")
        if not title or not isinstance(title, str):
            return 'page-title widget requires a "title" string param'
        return None


def builtin_widgets() -> list[WidgetComponent]:
    """Fresh instances of every built-in widget."""
    return [BreadcrumbWidget(), PageTitleWidget()]
