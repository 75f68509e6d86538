"""Backend-neutral types, cancellation and token estimation."""

from .cancellation import AbortSignal, run_abortable
from .generator import ContentGenerator
from .parts import (
    ContentPart,
    FunctionCallPart,
    FunctionResponsePart,
    InlineImagePart,
    TextPart,
)
from .tokens import (
    estimate_tokens,
    estimate_tokens_for_code,
    estimate_tokens_mixed,
    estimate_tokens_simple,
)
from .types import (
    Candidate,
    ChatRequest,
    ChatResponse,
    Content,
    ContentEmbedding,
    CountTokensRequest,
    CountTokensResponse,
    EmbedRequest,
    EmbedResponse,
    FinishReason,
    FunctionDeclaration,
    GenerationOptions,
    ModelInfo,
    Role,
    Tool,
    Turn,
    UsageMetadata,
)

__all__ = [
    "AbortSignal",
    "Candidate",
    "ChatRequest",
    "ChatResponse",
    "Content",
    "ContentEmbedding",
    "ContentGenerator",
    "ContentPart",
    "CountTokensRequest",
    "CountTokensResponse",
    "EmbedRequest",
    "EmbedResponse",
    "FinishReason",
    "FunctionCallPart",
    "FunctionDeclaration",
    "FunctionResponsePart",
    "GenerationOptions",
    "InlineImagePart",
    "ModelInfo",
    "Role",
    "TextPart",
    "Tool",
    "Turn",
    "UsageMetadata",
    "estimate_tokens",
    "estimate_tokens_for_code",
    "estimate_tokens_mixed",
    "estimate_tokens_simple",
    "run_abortable",
]
