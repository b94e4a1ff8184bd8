"""Server-side Markdown expansion via patitas.

Requires ``patitas``::

    pip install warble[markdown]
"""

from warble.markdown.fenced import process_fenced_slots, process_fenced_widgets
from warble.markdown.renderer import MarkdownRenderer, SupportsMarkdown

__all__ = [
    "MarkdownRenderer",
    "SupportsMarkdown",
    "process_fenced_slots",
    "process_fenced_widgets",
]
