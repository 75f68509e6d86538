"""Ollama adapter: the four-operation content generator over HTTP."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
import logging
from typing import TYPE_CHECKING, Any

import httpx
import pydantic

from ollama_bridge._dev_flags import dev_payload_logging_enabled
from ollama_bridge.config import Config
from ollama_bridge.core.cancellation import AbortSignal, run_abortable
from ollama_bridge.core.tokens import estimate_tokens
from ollama_bridge.core.types import (
    ContentEmbedding,
    CountTokensResponse,
    EmbedResponse,
    ModelInfo,
)
from ollama_bridge.errors import APIError, StreamError, ValidationError
from ollama_bridge.ollama._errors import raise_for_status, wrap_transport_error
from ollama_bridge.ollama.converter import (
    extract_text,
    to_chat_response,
    to_local_request,
)
from ollama_bridge.ollama.models import (
    LocalEmbeddingRequest,
    LocalEmbeddingResponse,
    LocalModelList,
    LocalResponse,
)
from ollama_bridge.ollama.stream import ChatStream

if TYPE_CHECKING:
    from collections.abc import Coroutine

    from ollama_bridge.core.types import (
        ChatRequest,
        ChatResponse,
        CountTokensRequest,
        EmbedRequest,
    )

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"
EMBEDDINGS_PATH = "/api/embeddings"
TAGS_PATH = "/api/tags"

_PAYLOAD_PREVIEW_CHARS = 2000


@dataclass(frozen=True)
class OllamaAdapter:
    """Content generator backed by a local Ollama server.

    Holds only immutable configuration. Every call opens its own HTTP client
    and owns its own working state, so one instance may serve any number of
    concurrent calls.

    Example:
        adapter = OllamaAdapter(Config(base_url="http://localhost:11434"))
        response = await adapter.generate(
            ChatRequest(model="llama3.2", contents=[Turn.from_text("Hi")])
        )
        print(response.text)
    """

    config: Config = field(default_factory=Config)
    #: Injected transport; tests pass an ``httpx.MockTransport`` here.
    transport: httpx.AsyncBaseTransport | None = None

    @property
    def base_url(self) -> str:
        """The normalized server endpoint, without a trailing slash."""
        return self.config.resolved_base_url

    async def generate(
        self, request: ChatRequest, request_id: str | None = None
    ) -> ChatResponse:
        """Run one non-streamed chat completion."""
        signal = request.abort_signal
        if signal is not None:
            signal.raise_if_aborted()
        payload = to_local_request(request, stream=False).to_payload()
        self._log_call("generate", request_id, request.model, payload)

        async with self._client() as client:
            response = await self._send(
                client.post(CHAT_PATH, json=payload), signal=signal, phase="generate"
            )
            await raise_for_status(response, phase="generate")
            try:
                body = LocalResponse.model_validate_json(response.content)
            except pydantic.ValidationError as e:
                raise APIError(
                    f"Ollama returned a malformed chat response: {_first_error(e)}",
                    status_code=response.status_code,
                    phase="generate",
                ) from e
        return to_chat_response(body)

    async def generate_stream(
        self, request: ChatRequest, request_id: str | None = None
    ) -> ChatStream:
        """Start a streamed chat completion and return its fragment cursor.

        The returned stream owns the HTTP connection; iterate it to the end,
        or close it with ``aclose()`` (or ``async with``) when stopping early.
        """
        signal = request.abort_signal or AbortSignal()
        signal.raise_if_aborted()
        payload = to_local_request(request, stream=True).to_payload()
        self._log_call("generate_stream", request_id, request.model, payload)

        client = self._client()
        try:
            http_request = client.build_request("POST", CHAT_PATH, json=payload)
            response = await self._send(
                client.send(http_request, stream=True), signal=signal, phase="stream"
            )
        except BaseException:
            await client.aclose()
            raise

        try:
            await raise_for_status(response, phase="stream")
            if response.is_closed or response.is_stream_consumed:
                raise StreamError(
                    "Ollama returned no response body to stream",
                    status_code=response.status_code,
                    phase="stream",
                )
        except BaseException:
            await response.aclose()
            await client.aclose()
            raise

        return ChatStream(
            client,
            response,
            signal=signal,
            base_url=self.base_url,
            request_id=request_id,
        )

    async def count_tokens(self, request: CountTokensRequest) -> CountTokensResponse:
        """Estimate prompt tokens locally; no network call is made."""
        texts: list[str] = []
        if request.system_instruction is not None:
            system_text = extract_text(request.system_instruction)
            if system_text:
                texts.append(system_text)
        for turn in request.contents:
            texts.extend(turn.texts())
        return CountTokensResponse(total_tokens=estimate_tokens(" ".join(texts)))

    async def embed(self, request: EmbedRequest) -> EmbedResponse:
        """Embed the text of all turns as a single prompt.

        Raises:
            ValidationError: When the turns carry no text; nothing is sent.
        """
        prompt = " ".join(t for turn in request.contents for t in turn.texts()).strip()
        if not prompt:
            raise ValidationError(
                "No text content found for embedding",
                hint="Add at least one non-empty text part to the request contents.",
            )
        signal = request.abort_signal
        if signal is not None:
            signal.raise_if_aborted()
        payload = LocalEmbeddingRequest(model=request.model, prompt=prompt).to_payload()
        self._log_call("embed", None, request.model, payload)

        async with self._client() as client:
            response = await self._send(
                client.post(EMBEDDINGS_PATH, json=payload), signal=signal, phase="embed"
            )
            await raise_for_status(
                response, phase="embed", label="Ollama embeddings API error"
            )
            try:
                body = LocalEmbeddingResponse.model_validate_json(response.content)
            except pydantic.ValidationError as e:
                raise APIError(
                    "Ollama returned a malformed embeddings response: "
                    f"{_first_error(e)}",
                    status_code=response.status_code,
                    phase="embed",
                ) from e
        return EmbedResponse(
            embeddings=(ContentEmbedding(values=tuple(body.embedding)),)
        )

    async def list_models(self) -> tuple[ModelInfo, ...]:
        """Return the models installed on the server."""
        logger.debug("Ollama list_models base_url=%s", self.base_url)
        async with self._client() as client:
            response = await self._send(
                client.get(TAGS_PATH), signal=None, phase="list_models"
            )
            await raise_for_status(response, phase="list_models")
            try:
                body = LocalModelList.model_validate_json(response.content)
            except pydantic.ValidationError as e:
                raise APIError(
                    f"Ollama returned a malformed model list: {_first_error(e)}",
                    status_code=response.status_code,
                    phase="list_models",
                ) from e
        return tuple(
            ModelInfo(
                name=m.name, modified_at=m.modified_at, size=m.size, digest=m.digest
            )
            for m in body.models
        )

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            timeout=httpx.Timeout(
                self.config.timeout_s, connect=self.config.connect_timeout_s
            ),
            transport=self.transport,
        )

    async def _send(
        self,
        call: Coroutine[Any, Any, httpx.Response],
        *,
        signal: AbortSignal | None,
        phase: str,
    ) -> httpx.Response:
        try:
            return await run_abortable(call, signal)
        except httpx.HTTPError as e:
            raise wrap_transport_error(e, base_url=self.base_url, phase=phase) from e

    def _log_call(
        self,
        operation: str,
        request_id: str | None,
        model: str,
        payload: dict[str, Any],
    ) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug(
            "Ollama %s request_id=%s model=%s messages=%d base_url=%s",
            operation,
            request_id,
            model,
            len(payload.get("messages", ())),
            self.base_url,
        )
        if dev_payload_logging_enabled():
            logger.debug("Ollama %s payload: %s", operation, _payload_preview(payload))


def _first_error(exc: pydantic.ValidationError) -> str:
    errors = exc.errors(include_url=False)
    if not errors:
        return str(exc)
    first = errors[0]
    loc = ".".join(str(p) for p in first.get("loc", ()))
    return f"{loc}: {first['msg']}" if loc else first["msg"]


def _payload_preview(payload: dict[str, Any]) -> str:
    text = json.dumps(_redact_images(payload), ensure_ascii=False)
    if len(text) <= _PAYLOAD_PREVIEW_CHARS:
        return text
    return text[:_PAYLOAD_PREVIEW_CHARS] + "..."


def _redact_images(payload: dict[str, Any]) -> dict[str, Any]:
    messages = payload.get("messages")
    if not messages:
        return payload
    redacted = []
    for message in messages:
        images = message.get("images")
        if images:
            message = {
                **message,
                "images": [f"<{len(image)} base64 chars>" for image in images],
            }
        redacted.append(message)
    return {**payload, "messages": redacted}
