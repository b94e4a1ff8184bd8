"""Component base class and render context.

Everything that renders is a Component: pages and widgets.  The same
component produces Markdown (for text clients and LLMs) or HTML (for
browsers), chosen by the render format driving it.

Hooks::

    get_data(params, signal=None, context=None)   # sync or async
    render_markdown(data, params, context=None)   # canonical content
    render_html(data, params, context=None)       # defaults to a markdown container
    get_title(data, params, context=None)         # pages only
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar

from warble._internal.html import escape_html
from warble.query import QueryParams

if TYPE_CHECKING:
    from warble.abort import AbortSignal


@dataclass(frozen=True, slots=True)
class ComponentFiles:
    """Loaded companion file contents (not paths)."""

    html: str | None = None
    md: str | None = None
    css: str | None = None


@dataclass(frozen=True, slots=True)
class ComponentContext:
    """Context passed to component hooks during a render.

    Attributes:
        pathname: The requested path (the leaf path, even for layouts).
        pattern: The matched route pattern.
        params: Route parameters from the URL.
        search_params: Query string parameters.
        files: Companion file contents for this component.
        signal: Abort signal for the current render, if any.
        is_leaf: Whether this component is the matched route itself.
        base_path: Prefix for links generated by the component.
    """

    pathname: str = ""
    pattern: str = ""
    params: Mapping[str, str] = field(default_factory=dict)
    search_params: QueryParams = field(default_factory=QueryParams)
    files: ComponentFiles = field(default_factory=ComponentFiles)
    signal: AbortSignal | None = None
    is_leaf: bool = False
    base_path: str = ""


class Component:
    """Base for pages and widgets.

    Subclasses set ``name`` and override ``get_data`` and
    ``render_markdown``; ``render_html`` is optional.
    """

    name: ClassVar[str] = "component"

    # Companion file paths (html, md, css) loaded into ``context.files``.
    files: ClassVar[Mapping[str, str] | None] = None

    async def get_data(
        self,
        params: Mapping[str, Any],
        signal: AbortSignal | None = None,
        context: ComponentContext | None = None,
    ) -> Any:
        """Fetch or compute data for *params*. Default: no data."""
        return None

    def render_markdown(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        return ""

    def render_html(
        self,
        data: Any,
        params: Mapping[str, Any],
        context: ComponentContext | None = None,
    ) -> str:
        """Render as HTML.

        Default wraps ``render_markdown`` output in a container marked for
        markdown expansion; a ``None`` result renders a loading placeholder.
        """
        if data is None:
            return f'<div class="c-loading" data-component="{self.name}">Loading...</div>'
        markdown = self.render_markdown(data, params, context)
        return (
            f'<div class="c-markdown" data-component="{self.name}" data-markdown>'
            f"{escape_html(markdown)}</div>"
        )

    def validate_params(self, params: Mapping[str, Any]) -> str | None:
        """Return an error message when *params* are invalid, else ``None``."""
        return None

    def render_error(self, error: BaseException, params: Mapping[str, Any]) -> str:
        return (
            f'<div class="c-error" data-component="{self.name}">'
            f"Error: {escape_html(str(error))}</div>"
        )

    def render_markdown_error(self, error: BaseException) -> str:
        return f"> **Error** (`{self.name}`): {error}"
