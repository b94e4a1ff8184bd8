"""Turn rendered fenced blocks back into router elements.

A Markdown renderer emits ```` ```router-slot ```` and
```` ```widget:name ```` fences as ordinary code blocks.  These helpers
rewrite those code blocks into ``<router-slot>`` and ``<widget-name>``
elements so slot injection and widget resolution can find them.
"""

import json
import re
from collections.abc import Callable

from warble.widgets.parser import to_widget_attrs

Unescape = Callable[[str], str]

_SLOT_BLOCK_RE = re.compile(
    r'<pre><code (?:data-language|class)="(?:language-)?router-slot">(.*?)</code></pre>',
    re.DOTALL | re.IGNORECASE,
)

_WIDGET_BLOCK_RE = re.compile(
    r'<pre><code (?:data-language|class)="(?:language-)?widget:([a-z][a-z0-9-]*)">(.*?)</code></pre>',
    re.DOTALL | re.IGNORECASE,
)


def process_fenced_slots(html: str, unescape: Unescape) -> str:
    """Replace rendered ``router-slot`` code blocks with ``<router-slot>`` elements."""
    return _SLOT_BLOCK_RE.sub(
        lambda m: f"<router-slot>{unescape(m.group(1).strip())}</router-slot>",
        html,
    )


def process_fenced_widgets(html: str, unescape: Unescape) -> str:
    """Replace rendered ``widget:name`` code blocks with ``<widget-name>`` elements.

    The JSON body becomes attributes.  A body that is empty or not a JSON
    object produces an element without attributes.
    """

    def _element(match: re.Match[str]) -> str:
        tag = f"widget-{match.group(1)}"
        body = unescape(match.group(2).strip())
        try:
            params = json.loads(body) if body else {}
        except json.JSONDecodeError:
            params = {}
        if not isinstance(params, dict) or not params:
            return f"<{tag}></{tag}>"
        return f"<{tag} {to_widget_attrs(params)}></{tag}>"

    return _WIDGET_BLOCK_RE.sub(_element, html)
