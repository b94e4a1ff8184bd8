"""Widget syntax parsing and position-based replacement.

Two syntaxes reference widgets inside rendered content.

Markdown fenced blocks::

    ```widget:crypto-price
    {"coin": "bitcoin"}
    ```

HTML custom elements::

    <widget-crypto-price coin="bitcoin"></widget-crypto-price>

Both parse into ``ParsedWidget`` occurrences carrying their source span.
Replacement splices by span, so two occurrences with identical syntax are
still replaced independently.
"""

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from warble._internal.html import SSR_ATTR, escape_attr, unescape_html

_BLOCK_RE = re.compile(r"```widget:(?P<name>[a-z][a-z0-9-]*)\n(?P<params>.*?)```", re.DOTALL)

_TAG_RE = re.compile(
    r"<widget-([a-z][a-z0-9-]*)(\s[^>]*)?>(.*?)</widget-\1>",
    re.DOTALL | re.IGNORECASE,
)

_ATTR_RE = re.compile(
    r"""([a-z][a-z0-9-]*)(?:="([^"]*)"|='([^']*)'|=([^\s>]+))?""",
    re.IGNORECASE,
)

_CAMEL_RE = re.compile(r"([A-Z])")


@dataclass(eq=False, slots=True)
class ParsedWidget:
    """One widget occurrence in a piece of content.

    Compared and hashed by identity: each occurrence is its own key even
    when its text matches another occurrence exactly.

    Attributes:
        name: Widget name without the ``widget-`` prefix.
        params: Parsed params, or ``None`` when they failed to parse.
        start: Offset of the first character of the occurrence.
        end: Offset just past the occurrence.
        source: The matched text.
        attrs: Raw attribute string (HTML tags only).
        parse_error: Why params failed to parse, if they did.
    """

    name: str
    params: dict[str, Any] | None
    start: int
    end: int
    source: str
    attrs: str = ""
    parse_error: str | None = field(default=None)


def parse_widget_blocks(markdown: str) -> list[ParsedWidget]:
    """Find ```` ```widget:name ```` fences in *markdown*.

    An empty body means no params.  A body that is not a JSON object
    yields an occurrence with ``params=None`` and a ``parse_error``.
    """
    blocks: list[ParsedWidget] = []
    for match in _BLOCK_RE.finditer(markdown):
        raw = match.group("params").strip()
        params: dict[str, Any] | None = {}
        error: str | None = None

        if raw:
            try:
                parsed = json.loads(raw)
            except json.JSONDecodeError as exc:
                params, error = None, f"Invalid JSON: {exc.msg}"
            else:
                if isinstance(parsed, dict):
                    params = parsed
                else:
                    params, error = None, "Params must be a JSON object"

        blocks.append(
            ParsedWidget(
                name=match.group("name"),
                params=params,
                start=match.start(),
                end=match.end(),
                source=match.group(0),
                parse_error=error,
            ),
        )
    return blocks


def parse_widget_tags(html: str) -> list[ParsedWidget]:
    """Find ``<widget-name ...>...</widget-name>`` elements in *html*."""
    tags: list[ParsedWidget] = []
    for match in _TAG_RE.finditer(html):
        attrs = (match.group(2) or "").strip()
        tags.append(
            ParsedWidget(
                name=match.group(1).lower(),
                params=parse_attrs_to_params(attrs),
                start=match.start(),
                end=match.end(),
                source=match.group(0),
                attrs=attrs,
            ),
        )
    return tags


def parse_attrs_to_params(attrs: str) -> dict[str, Any]:
    """Turn an HTML attribute string into widget params.

    Names go from kebab-case to snake_case.  Values are JSON-decoded when
    possible and kept as strings otherwise; a bare attribute is ``""``.
    ``data-ssr`` is ignored.

    >>> parse_attrs_to_params('coin="bitcoin" max-items="5" compact')
    {'coin': 'bitcoin', 'max_items': 5, 'compact': ''}
    """
    params: dict[str, Any] = {}
    for match in _ATTR_RE.finditer(attrs):
        name = match.group(1)
        if name.lower() == SSR_ATTR:
            continue
        key = name.replace("-", "_")
        raw = next((g for g in match.group(2, 3, 4) if g is not None), None)
        if raw is None:
            params[key] = ""
            continue
        raw = unescape_html(raw)
        try:
            params[key] = json.loads(raw)
        except json.JSONDecodeError:
            params[key] = raw
    return params


def to_widget_attrs(params: Mapping[str, Any]) -> str:
    """Serialize params as HTML attributes, the inverse of ``parse_attrs_to_params``.

    Keys become kebab-case; non-string values are JSON-encoded.
    """
    attrs = []
    for key, value in params.items():
        name = _CAMEL_RE.sub(r"-\1", key).lower().replace("_", "-")
        text = value if isinstance(value, str) else json.dumps(value)
        attrs.append(f'{name}="{escape_attr(text)}"')
    return " ".join(attrs)


def replace_occurrences(content: str, replacements: Mapping[ParsedWidget, str]) -> str:
    """Splice each replacement into *content* at its occurrence's span.

    Occurrences must come from parsing *content* itself.  Splicing runs
    from the last occurrence to the first so earlier offsets stay valid.
    """
    result = content
    for occurrence, text in sorted(replacements.items(), key=lambda item: item[0].start, reverse=True):
        result = result[: occurrence.start] + text + result[occurrence.end:]
    return result
