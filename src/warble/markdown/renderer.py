"""Markdown renderer used to expand ``<mark-down>`` blocks server-side.

``HtmlFormat`` accepts anything with ``render(source) -> str``.
``MarkdownRenderer`` is the default, backed by patitas::

    HtmlFormat(markdown_renderer=MarkdownRenderer())
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from warble.errors import MissingDependencyError

if TYPE_CHECKING:
    from patitas import Markdown


@runtime_checkable
class SupportsMarkdown(Protocol):
    """Renders Markdown source to an HTML string."""

    def render(self, source: str) -> str: ...


class MarkdownRenderer:
    """patitas-backed ``SupportsMarkdown``.

    Fence info strings survive as the code language, which is what lets
    ```` ```router-slot ```` and ```` ```widget:name ```` fences be turned
    back into elements after rendering.

    Raises ``MissingDependencyError`` on construction when patitas is not
    installed.
    """

    __slots__ = ("_md",)

    def __init__(self, *, plugins: list[str] | None = None, highlight: bool = False) -> None:
        try:
            from patitas import Markdown
        except ImportError:
            raise MissingDependencyError("Markdown expansion", "patitas", "markdown") from None

        self._md: Markdown = Markdown(plugins=plugins or ["all"], highlight=highlight)

    def render(self, source: str) -> str:
        return self._md(source) if source.strip() else ""
