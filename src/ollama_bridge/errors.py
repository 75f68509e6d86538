"""Exception hierarchy for ollama-bridge."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class BridgeError(Exception):
    """Base exception for all ollama-bridge errors."""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        self.hint = hint


class ConfigurationError(BridgeError):
    """Configuration validation or resolution failed."""


class ValidationError(BridgeError):
    """Call input was rejected before any network I/O."""


class APIError(BridgeError):
    """A call to the Ollama server failed.

    ``phase`` names the adapter operation that failed (``"generate"``,
    ``"stream"``, ``"embed"``, ``"list_models"``). The adapter never retries;
    the metadata is there so callers can decide for themselves.
    """

    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        status_code: int | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint)
        self.status_code = status_code
        self.phase = phase


class HttpError(APIError):
    """The server answered with a non-2xx status.

    ``body`` holds the response text exactly as the server sent it.
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int,
        body: str,
        hint: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint, status_code=status_code, phase=phase)
        self.body = body


class OllamaConnectionError(APIError):
    """The Ollama server could not be reached at the configured base URL."""

    def __init__(
        self,
        message: str,
        *,
        base_url: str,
        hint: str | None = None,
        phase: str | None = None,
    ) -> None:
        super().__init__(message, hint=hint, phase=phase)
        self.base_url = base_url


class StreamError(APIError):
    """A streaming response could not be started or was cut off mid-transfer."""


def _walk_exception_chain(exc: BaseException) -> Iterator[BaseException]:
    """Yield *exc* and its ``__cause__``/``__context__`` chain, with cycle protection."""
    seen: set[int] = set()
    stack: list[BaseException] = [exc]
    while stack:
        cur = stack.pop()
        if id(cur) in seen:
            continue
        seen.add(id(cur))
        yield cur

        cause = cur.__cause__
        if isinstance(cause, BaseException):
            stack.append(cause)
        context = cur.__context__
        if isinstance(context, BaseException):
            stack.append(context)
