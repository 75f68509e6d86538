"""Wire models for the Ollama HTTP API.

Outbound models serialize with ``exclude_unset``: a field the converter never
set is absent from the JSON body rather than sent as ``null``. Inbound models
ignore unknown fields so timing counters and newer additions pass through
harmlessly.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

LocalRole = Literal["system", "user", "assistant", "tool"]


class _WireModel(BaseModel):
    model_config = ConfigDict(extra="ignore")

    def to_payload(self) -> dict[str, Any]:
        """Return the JSON body for this model."""
        return self.model_dump(mode="json", exclude_unset=True)


class LocalToolCallFunction(_WireModel):
    name: str
    arguments: dict[str, Any] = Field(default_factory=dict)


class LocalToolCall(_WireModel):
    function: LocalToolCallFunction


class LocalMessage(_WireModel):
    role: LocalRole
    content: str = ""
    images: list[str] | None = None
    tool_calls: list[LocalToolCall] | None = None


class LocalOptions(_WireModel):
    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    num_predict: int | None = None
    stop: list[str] | None = None
    seed: int | None = None


class LocalToolFunction(_WireModel):
    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)


class LocalTool(_WireModel):
    type: Literal["function"] = "function"
    function: LocalToolFunction


class LocalRequest(_WireModel):
    """Body of ``POST /api/chat``."""

    model: str
    messages: list[LocalMessage]
    options: LocalOptions | None = None
    stream: bool = False
    tools: list[LocalTool] | None = None


class LocalChunk(_WireModel):
    """One NDJSON record of a streamed chat response.

    ``message`` may be missing on the terminal record.
    """

    model: str = ""
    created_at: str | None = None
    message: LocalMessage | None = None
    done: bool = False
    done_reason: str | None = None
    prompt_eval_count: int | None = None
    eval_count: int | None = None


class LocalResponse(LocalChunk):
    """Body of a non-streamed chat response."""

    message: LocalMessage = Field(
        default_factory=lambda: LocalMessage(role="assistant")
    )
    total_duration: int | None = None
    load_duration: int | None = None
    prompt_eval_duration: int | None = None
    eval_duration: int | None = None


class LocalEmbeddingRequest(_WireModel):
    """Body of ``POST /api/embeddings``."""

    model: str
    prompt: str


class LocalEmbeddingResponse(_WireModel):
    embedding: list[float]


class LocalModel(_WireModel):
    name: str
    modified_at: str | None = None
    size: int | None = None
    digest: str | None = None


class LocalModelList(_WireModel):
    """Body of ``GET /api/tags``."""

    models: list[LocalModel] = Field(default_factory=list)
