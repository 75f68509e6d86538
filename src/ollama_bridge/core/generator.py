"""Content generator protocol: the four operations a backend must provide."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from .types import (
        ChatRequest,
        ChatResponse,
        CountTokensRequest,
        CountTokensResponse,
        EmbedRequest,
        EmbedResponse,
    )


@runtime_checkable
class ContentGenerator(Protocol):
    """Minimal backend interface consumed by the orchestration client."""

    async def generate(
        self, request: ChatRequest, request_id: str | None = None
    ) -> ChatResponse:
        """Return one complete response."""
        ...

    async def generate_stream(
        self, request: ChatRequest, request_id: str | None = None
    ) -> AsyncIterator[ChatResponse]:
        """Return a cursor over response fragments."""
        ...

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Count (or estimate) prompt tokens."""
        ...

    async def embed(self, request: EmbedRequest) -> EmbedResponse:
        """Embed the request contents."""
        ...
