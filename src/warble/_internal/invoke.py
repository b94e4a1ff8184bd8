"""Invoke helpers — call sync or async component hooks uniformly.

``get_data`` and module loaders can be ``def`` or ``async def``.  Any code
that calls user-provided hooks must handle both cases, so the check
lives in exactly one place.

Usage::

    from warble._internal.invoke import invoke

    data = await invoke(component.get_data, params, signal=signal, context=ctx)
"""

import inspect
from typing import Any


async def invoke(hook: Any, *args: Any, **kwargs: Any) -> Any:
    """Call *hook* and await the result if it is awaitable."""
    result = hook(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
