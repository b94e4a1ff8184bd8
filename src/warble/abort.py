"""Cooperative cancellation for render sessions.

An ``AbortSignal`` is handed to ``render_url`` and threaded through every
``get_data`` call and companion fetch.  Work already in flight may finish,
but nothing new starts once the signal fires and its results are dropped.
"""

import anyio

from warble.errors import RenderAborted


class AbortSignal:
    """One-shot abort flag.

    Safe to create outside an event loop; the ``anyio.Event`` backing
    ``wait`` is made on first use.

    Usage::

        signal = AbortSignal()
        tg.start_soon(renderer.render, "/slow", signal)
        ...
        signal.abort("client went away")
    """

    __slots__ = ("_aborted", "_event", "reason")

    def __init__(self) -> None:
        self._aborted = False
        self._event: anyio.Event | None = None
        self.reason: str | None = None

    @property
    def aborted(self) -> bool:
        return self._aborted

    def abort(self, reason: str | None = None) -> None:
        """Fire the signal. Later calls keep the first reason."""
        if self._aborted:
            return
        self._aborted = True
        self.reason = reason
        if self._event is not None:
            self._event.set()

    async def wait(self) -> None:
        if self._aborted:
            return
        if self._event is None:
            self._event = anyio.Event()
        await self._event.wait()

    def raise_if_aborted(self) -> None:
        if self._aborted:
            raise RenderAborted(self.reason or "aborted")


def check(signal: AbortSignal | None) -> None:
    """Raise ``RenderAborted`` if *signal* is set. ``None`` never aborts."""
    if signal is not None:
        signal.raise_if_aborted()
