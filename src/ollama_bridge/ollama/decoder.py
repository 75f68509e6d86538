"""Incremental decoder for newline-delimited JSON response bodies.

Bytes arrive in chunks whose boundaries bear no relation to record
boundaries. The decoder keeps exactly the not-yet-terminated suffix of the
input in its buffer, so every byte is parsed once and none are dropped.
Malformed lines are logged and skipped; they never end the stream.
"""

from __future__ import annotations

import codecs
import json
import logging
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import AsyncIterable, AsyncIterator

logger = logging.getLogger(__name__)

_PREVIEW_CHARS = 120


class NDJSONDecoder:
    """Turn arbitrary byte chunks into JSON objects, one per line.

    Example:
        decoder = NDJSONDecoder()
        decoder.feed(b'{"a": 1}\\n{"b"')   # -> [{"a": 1}]
        decoder.feed(b': 2}\\n')            # -> [{"b": 2}]
        decoder.flush()                     # -> []
    """

    def __init__(self) -> None:
        self._buffer = ""
        # Multi-byte characters may straddle chunk boundaries.
        self._text = codecs.getincrementaldecoder("utf-8")(errors="replace")

    @property
    def buffer(self) -> str:
        """Received text not yet resolved into a complete line."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[dict[str, Any]]:
        """Consume one chunk and return the records it completed."""
        text = chunk if isinstance(chunk, str) else self._text.decode(chunk)
        if not text:
            return []
        self._buffer += text
        lines = self._buffer.split("\n")
        self._buffer = lines.pop()

        records: list[dict[str, Any]] = []
        for line in lines:
            record = _parse_line(line)
            if record is not None:
                records.append(record)
        return records

    def flush(self) -> list[dict[str, Any]]:
        """Signal end of input and return the trailing record, if well-formed."""
        remaining = self._buffer + self._text.decode(b"", final=True)
        self._buffer = ""
        record = _parse_line(remaining)
        return [record] if record is not None else []


def _parse_line(line: str) -> dict[str, Any] | None:
    if not line.strip():
        return None
    try:
        value = json.loads(line)
    except json.JSONDecodeError as e:
        logger.debug("Skipping malformed stream line %r: %s", _preview(line), e)
        return None
    if not isinstance(value, dict):
        logger.debug("Skipping non-object stream line %r", _preview(line))
        return None
    return value


def _preview(line: str) -> str:
    line = line.strip()
    if len(line) <= _PREVIEW_CHARS:
        return line
    return line[:_PREVIEW_CHARS] + "..."


async def iter_ndjson(source: AsyncIterable[bytes]) -> AsyncIterator[dict[str, Any]]:
    """Yield JSON objects from an async byte source.

    The source is closed on every exit path: exhaustion, error, or the
    consumer closing this generator early.
    """
    decoder = NDJSONDecoder()
    try:
        async for chunk in source:
            for record in decoder.feed(chunk):
                yield record
        for record in decoder.flush():
            yield record
    finally:
        aclose = getattr(source, "aclose", None)
        if callable(aclose):
            await aclose()
