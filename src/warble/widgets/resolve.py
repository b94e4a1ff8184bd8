"""Recursive widget resolution.

One engine serves every syntax.  Callers supply how to find occurrences,
how to render one, and how to splice results back in::

    html = await resolve_widgets(html, parse_widget_tags, render_tag, wrap_tags)

Occurrences found at one depth render concurrently.  Each rendered output
is scanned again, one level deeper, before it is spliced into its parent.
"""

import logging
from collections.abc import Awaitable, Callable, Mapping, Sequence
from typing import TypeVar

import anyio

logger = logging.getLogger("warble.widgets")

MAX_WIDGET_DEPTH = 10

T = TypeVar("T")

Parse = Callable[[str], Sequence[T]]
# Returns the rendered output, or None to keep the occurrence verbatim.
ResolveOne = Callable[[T], Awaitable[str | None]]
Replace = Callable[[str, Mapping[T, str]], str]


async def resolve_widgets(
    content: str,
    parse: Parse[T],
    resolve_one: ResolveOne[T],
    replace: Replace[T],
    depth: int = 0,
    max_depth: int = MAX_WIDGET_DEPTH,
) -> str:
    """Resolve every widget occurrence in *content*, recursively.

    Occurrences must be hashable by identity so that identical markup at
    different positions gets its own replacement.  ``resolve_one`` handles
    its own failures; it should return a fallback rather than raise.

    At *max_depth* the content is returned unresolved and a warning is
    logged.  Reaching the ceiling is never an error.
    """
    occurrences = parse(content)
    if not occurrences:
        return content

    if depth >= max_depth:
        logger.warning(
            "Widget nesting exceeded %d levels; leaving %d widget(s) unresolved",
            max_depth,
            len(occurrences),
        )
        return content

    resolved: dict[T, str] = {}

    async def _resolve(occurrence: T) -> None:
        output = await resolve_one(occurrence)
        if output is None:
            return
        resolved[occurrence] = await resolve_widgets(
            output, parse, resolve_one, replace, depth + 1, max_depth
        )

    async with anyio.create_task_group() as tg:
        for occurrence in occurrences:
            tg.start_soon(_resolve, occurrence)

    return replace(content, resolved)
