"""Server-side rendering: the shared pipeline and its HTML and Markdown formats."""

from warble.rendering.html import HtmlFormat
from warble.rendering.markdown import MarkdownFormat
from warble.rendering.pipeline import (
    ABORTED_STATUS,
    RenderFormat,
    RenderResult,
    SsrRenderer,
    assert_safe_redirect,
    render_url,
)

__all__ = [
    "ABORTED_STATUS",
    "HtmlFormat",
    "MarkdownFormat",
    "RenderFormat",
    "RenderResult",
    "SsrRenderer",
    "assert_safe_redirect",
    "render_url",
]
