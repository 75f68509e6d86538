"""Test helpers (small, reusable doubles and wire builders).

Keep this file tiny and purpose-built: it exists so test modules share one way
of spelling Ollama wire records and streamed bodies.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from dataclasses import dataclass, field
import json
from typing import Any


def chat_chunk(
    content: str = "",
    *,
    done: bool = False,
    model: str = "llama3.2",
    **extra: Any,
) -> dict[str, Any]:
    """Build one streamed ``/api/chat`` record."""
    record: dict[str, Any] = {
        "model": model,
        "created_at": "2024-05-01T12:00:00Z",
        "message": {"role": "assistant", "content": content},
        "done": done,
    }
    record.update(extra)
    return record


def full_response(
    content: str = "Hello",
    *,
    done_reason: str = "stop",
    prompt_eval_count: int = 5,
    eval_count: int = 3,
    **message_extra: Any,
) -> dict[str, Any]:
    """Build a non-streamed ``/api/chat`` response body."""
    return {
        "model": "llama3.2",
        "created_at": "2024-05-01T12:00:00Z",
        "message": {"role": "assistant", "content": content, **message_extra},
        "done": True,
        "done_reason": done_reason,
        "prompt_eval_count": prompt_eval_count,
        "eval_count": eval_count,
        "total_duration": 1_234_567,
    }


def ndjson(*records: dict[str, Any]) -> bytes:
    """Encode records as a newline-delimited JSON body."""
    return b"".join(json.dumps(r, ensure_ascii=False).encode() + b"\n" for r in records)


async def byte_chunks(*chunks: bytes) -> AsyncIterator[bytes]:
    """Async byte source yielding the given chunks in order."""
    for chunk in chunks:
        yield chunk


async def failing_body(*chunks: bytes, error: BaseException) -> AsyncIterator[bytes]:
    """Yield *chunks*, then fail the way a dropped connection does."""
    for chunk in chunks:
        yield chunk
    raise error


@dataclass
class GatedBody:
    """Async byte source that yields ``head`` and then blocks until released.

    ``blocked`` is set once the head is delivered and the source is waiting;
    ``closed`` records that the source was unwound (finished or cancelled).
    """

    head: list[bytes]
    tail: list[bytes] = field(default_factory=list)
    blocked: asyncio.Event = field(default_factory=asyncio.Event)
    release: asyncio.Event = field(default_factory=asyncio.Event)
    closed: bool = False

    def __aiter__(self) -> AsyncIterator[bytes]:
        return self._iter()

    async def _iter(self) -> AsyncIterator[bytes]:
        try:
            for chunk in self.head:
                yield chunk
            self.blocked.set()
            await self.release.wait()
            for chunk in self.tail:
                yield chunk
        finally:
            self.closed = True
