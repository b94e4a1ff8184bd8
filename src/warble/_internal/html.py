"""HTML string helpers shared by components, formats and widgets."""

import html
import json
from typing import Any

# Attribute marking a widget tag as server-rendered; carries the JSON data.
SSR_ATTR = "data-ssr"

STATUS_MESSAGES: dict[int, str] = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    410: "Gone",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def escape_html(text: str) -> str:
    """Escape HTML entities, including backticks so markdown survives a round trip."""
    return html.escape(text, quote=True).replace("`", "&#96;")


def unescape_html(text: str) -> str:
    return html.unescape(text)


def escape_attr(value: str) -> str:
    return html.escape(value, quote=True)


def status_message(status: int) -> str:
    return STATUS_MESSAGES.get(status, "Error")


def to_json_attr(data: Any) -> str:
    """Serialize *data* for a double-quoted HTML attribute."""
    return escape_attr(json.dumps(data, default=str, separators=(",", ":")))
