"""Explicit cursor over the fragments of a streamed chat response."""

from __future__ import annotations

from contextlib import aclosing
import logging
from typing import TYPE_CHECKING, Self

import httpx
import pydantic

from ollama_bridge.core.cancellation import AbortSignal, run_abortable
from ollama_bridge.ollama._errors import wrap_transport_error
from ollama_bridge.ollama.converter import fragment_has_content, to_chat_chunk
from ollama_bridge.ollama.decoder import iter_ndjson
from ollama_bridge.ollama.models import LocalChunk

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from types import TracebackType

    from ollama_bridge.core.types import ChatResponse

__all__ = ["ChatStream", "drain"]

logger = logging.getLogger(__name__)


class ChatStream:
    """Finite, non-restartable async iterator of ``ChatResponse`` fragments.

    Fragments arrive in the order the server wrote them. Records without any
    content are suppressed unless they are terminal, and iteration ends after
    the first terminal fragment. The HTTP response and client are released
    when iteration finishes, fails, is cancelled, or ``aclose()`` is called.

    Example:
        async with await adapter.generate_stream(request) as stream:
            async for fragment in stream:
                print(fragment.text, end="")
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        response: httpx.Response,
        *,
        signal: AbortSignal | None = None,
        base_url: str,
        request_id: str | None = None,
    ) -> None:
        self._client = client
        self._response = response
        self._signal = signal if signal is not None else AbortSignal()
        self._base_url = base_url
        self._request_id = request_id
        self._fragments = self._iter_fragments()
        self._closed = False

    @property
    def closed(self) -> bool:
        """Whether the underlying response has been released."""
        return self._closed

    @property
    def signal(self) -> AbortSignal:
        """The signal that cancels this stream."""
        return self._signal

    def cancel(self, reason: str | None = None) -> None:
        """Abort the stream; the pending or next read raises ``CancelledError``.

        When the originating request carried an ``AbortSignal`` this aborts
        that same signal.
        """
        self._signal.abort(reason)

    def __aiter__(self) -> Self:
        return self

    async def __anext__(self) -> ChatResponse:
        if self._closed:
            raise StopAsyncIteration
        try:
            fragment = await run_abortable(self._advance(), self._signal)
        except httpx.HTTPError as e:
            await self.aclose()
            raise wrap_transport_error(
                e, base_url=self._base_url, phase="stream"
            ) from e
        except BaseException:
            await self.aclose()
            raise
        if fragment is None:
            await self.aclose()
            raise StopAsyncIteration
        return fragment

    async def aclose(self) -> None:
        """Release the response and its client. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True
        try:
            await self._fragments.aclose()
        finally:
            try:
                await self._response.aclose()
            finally:
                await self._client.aclose()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    def __repr__(self) -> str:
        return (
            f"ChatStream(request_id={self._request_id!r}, closed={self._closed}, "
            f"signal={self._signal!r})"
        )

    async def _advance(self) -> ChatResponse | None:
        return await anext(self._fragments, None)

    async def _iter_fragments(self) -> AsyncIterator[ChatResponse]:
        async with aclosing(iter_ndjson(self._response.aiter_bytes())) as records:
            async for record in records:
                try:
                    chunk = LocalChunk.model_validate(record)
                except pydantic.ValidationError as e:
                    logger.debug(
                        "Skipping invalid stream record (request_id=%s): %s",
                        self._request_id,
                        e.errors(include_url=False),
                    )
                    continue

                fragment = to_chat_chunk(chunk)
                if chunk.done:
                    # Anything the server writes after this is never read.
                    yield fragment
                    return
                if fragment_has_content(fragment):
                    yield fragment


async def drain(stream: ChatStream) -> list[ChatResponse]:
    """Collect every remaining fragment of *stream*."""
    async with stream:
        return [fragment async for fragment in stream]
