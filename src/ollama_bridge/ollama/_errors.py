"""Map httpx failures and error responses onto the library's error types."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import httpx

from ollama_bridge.errors import (
    APIError,
    HttpError,
    OllamaConnectionError,
    StreamError,
    _walk_exception_chain,
)

if TYPE_CHECKING:
    from collections.abc import Iterator

_START_SERVER_HINT = "Please ensure Ollama is running (try: ollama serve)"


def _is_connection_refused(exc: BaseException) -> bool:
    for e in _walk_exception_chain(exc):
        if isinstance(e, httpx.ConnectError | ConnectionRefusedError):
            return True
        if "ECONNREFUSED" in str(e) or "Connection refused" in str(e):
            return True
    return False


def _iter_status(exc: BaseException) -> Iterator[int]:
    for e in _walk_exception_chain(exc):
        response = getattr(e, "response", None)
        value = getattr(response, "status_code", None)
        if isinstance(value, int):
            yield value


def wrap_transport_error(
    exc: BaseException,
    *,
    base_url: str,
    phase: str,
) -> APIError:
    """Map a transport-level exception into an APIError subclass.

    ``asyncio.CancelledError`` is re-raised untouched. An existing APIError
    is enriched with the phase and returned as-is.
    """
    if isinstance(exc, asyncio.CancelledError):
        raise exc

    if isinstance(exc, APIError):
        if exc.phase is None:
            exc.phase = phase
        return exc

    if _is_connection_refused(exc):
        return OllamaConnectionError(
            f"Cannot connect to Ollama at {base_url}. {_START_SERVER_HINT}",
            base_url=base_url,
            hint="Start the server with 'ollama serve' or point OLLAMA_HOST at it.",
            phase=phase,
        )

    status_code = next(_iter_status(exc), None)
    if isinstance(exc, httpx.TimeoutException):
        return APIError(
            f"Ollama {phase} timed out talking to {base_url}: {exc}",
            hint="Increase Config.timeout_s for slow local models.",
            status_code=status_code,
            phase=phase,
        )

    cause = str(exc)
    if phase == "stream":
        return StreamError(
            f"Ollama stream interrupted: {cause}"
            if cause
            else "Ollama stream interrupted",
            status_code=status_code,
            phase=phase,
        )

    return APIError(
        f"Ollama {phase} failed: {cause}" if cause else f"Ollama {phase} failed",
        status_code=status_code,
        phase=phase,
    )


async def raise_for_status(
    response: httpx.Response,
    *,
    phase: str,
    label: str = "Ollama API error",
) -> None:
    """Raise HttpError carrying the body text when *response* is not 2xx."""
    if response.is_success:
        return
    await response.aread()
    body = response.text
    raise HttpError(
        f"{label} ({response.status_code}): {body}",
        status_code=response.status_code,
        body=body,
        phase=phase,
    )
