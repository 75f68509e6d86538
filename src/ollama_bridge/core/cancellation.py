"""Caller-driven cancellation for adapter calls.

An ``AbortSignal`` is handed to a call by the caller. The adapter checks it
before any I/O and races it against every in-flight await on the network, so
aborting releases the connection promptly. Cancellation surfaces as
``asyncio.CancelledError`` and is never reshaped into a library error.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, TypeVar

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

T = TypeVar("T")


class AbortSignal:
    """One-shot cancellation flag that can be awaited."""

    def __init__(self) -> None:
        self._event = asyncio.Event()
        self._reason: str | None = None

    def abort(self, reason: str | None = None) -> None:
        """Request cancellation. Later calls keep the first reason."""
        if self._event.is_set():
            return
        self._reason = reason
        self._event.set()

    @property
    def aborted(self) -> bool:
        """Whether ``abort()`` has been called."""
        return self._event.is_set()

    @property
    def reason(self) -> str | None:
        """The reason passed to the first ``abort()`` call, if any."""
        return self._reason

    async def wait(self) -> None:
        """Block until the signal is aborted."""
        await self._event.wait()

    def raise_if_aborted(self) -> None:
        """Raise ``asyncio.CancelledError`` when the signal is aborted."""
        if self._event.is_set():
            raise asyncio.CancelledError(self._reason or "aborted by caller")

    def __repr__(self) -> str:
        """Return a short state summary."""
        return f"AbortSignal(aborted={self.aborted}, reason={self._reason!r})"


async def run_abortable(
    coro: Coroutine[Any, Any, T],
    signal: AbortSignal | None,
) -> T:
    """Await *coro*, giving up as soon as *signal* is aborted.

    When the signal wins the race the work is cancelled (running its cleanup)
    before ``asyncio.CancelledError`` is raised to the caller.
    """
    if signal is None:
        return await coro
    if signal.aborted:
        coro.close()
        signal.raise_if_aborted()

    work = asyncio.ensure_future(coro)
    waiter = asyncio.ensure_future(signal.wait())
    try:
        await asyncio.wait({work, waiter}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        waiter.cancel()
        if not work.done():
            work.cancel()
            # Let the cancelled work unwind before reporting the outcome.
            await asyncio.gather(work, return_exceptions=True)

    if work.cancelled():
        signal.raise_if_aborted()
        raise asyncio.CancelledError
    return work.result()
