"""Page component — params come from the URL, context carries file content.

Default rendering follows the file fallback table:

- ``render_html``: html file -> md file in ``<mark-down>`` plus a slot -> bare slot
- ``render_markdown``: md file -> slot fence
- ``get_data``: no data

A route with only ``about.page.md`` therefore needs no Python at all.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar

from warble._internal.html import escape_html
from warble.components.base import Component, ComponentContext

HTML_SLOT = "<router-slot></router-slot>"
MARKDOWN_SLOT = "```router-slot\n```"

_EMPTY_MARKDOWN_TAG = "<mark-down></mark-down>"


class PageComponent(Component):
    """Base for ``*.page.py`` modules.

    A page module exposes an instance as ``page``::

        class ProjectPage(PageComponent):
            async def get_data(self, params, signal=None, context=None):
                return await load_project(params["id"])

            def get_title(self, data, params, context=None):
                return data["name"]

        page = ProjectPage()
    """

    name: ClassVar[str] = "page"

    def render_html(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        files = context.files if context is not None else None
        style = f"<style>{files.css}</style>\n" if files is not None and files.css else ""

        if files is not None and files.html:
            html = style + files.html
            # An html template may host the md file in an empty <mark-down>
            if files.md and _EMPTY_MARKDOWN_TAG in html:
                html = html.replace(
                    _EMPTY_MARKDOWN_TAG,
                    f"<mark-down>{escape_html(files.md)}</mark-down>",
                    1,
                )
            return html

        if files is not None and files.md:
            return f"{style}<mark-down>{escape_html(files.md)}</mark-down>\n{HTML_SLOT}"

        return HTML_SLOT

    def render_markdown(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        if context is not None and context.files.md:
            return context.files.md
        return MARKDOWN_SLOT

    def get_title(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str | None:
        return None


# Shared instance used when a route has no ``.page.py`` module.
default_page = PageComponent()
