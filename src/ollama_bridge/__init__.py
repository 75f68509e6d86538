"""ollama-bridge: serve a Gemini-style chat client from a local Ollama server.

Public API:
    - OllamaAdapter: generate, generate_stream, count_tokens, embed, list_models
    - ChatStream: cancellable cursor over streamed fragments
    - Config: endpoint and timeout configuration
    - Request/response types, AbortSignal, token estimators, errors
"""

from __future__ import annotations

import logging

from ollama_bridge.config import Config
from ollama_bridge.core import (
    AbortSignal,
    Candidate,
    ChatRequest,
    ChatResponse,
    Content,
    ContentEmbedding,
    ContentGenerator,
    ContentPart,
    CountTokensRequest,
    CountTokensResponse,
    EmbedRequest,
    EmbedResponse,
    FinishReason,
    FunctionCallPart,
    FunctionDeclaration,
    FunctionResponsePart,
    GenerationOptions,
    InlineImagePart,
    ModelInfo,
    TextPart,
    Tool,
    Turn,
    UsageMetadata,
    estimate_tokens,
    estimate_tokens_for_code,
    estimate_tokens_mixed,
    estimate_tokens_simple,
)
from ollama_bridge.errors import (
    APIError,
    BridgeError,
    ConfigurationError,
    HttpError,
    OllamaConnectionError,
    StreamError,
    ValidationError,
)
from ollama_bridge.ollama import ChatStream, OllamaAdapter

try:
    from importlib.metadata import PackageNotFoundError, version

    __version__ = version("ollama-bridge")
except PackageNotFoundError:
    __version__ = "0.0.0+unknown"

# Library-level NullHandler: stay silent unless the consumer configures logging.
logging.getLogger("ollama_bridge").addHandler(logging.NullHandler())

__all__ = [
    "APIError",
    "AbortSignal",
    "BridgeError",
    "Candidate",
    "ChatRequest",
    "ChatResponse",
    "ChatStream",
    "Config",
    "ConfigurationError",
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
    "HttpError",
    "InlineImagePart",
    "ModelInfo",
    "OllamaAdapter",
    "OllamaConnectionError",
    "StreamError",
    "TextPart",
    "Tool",
    "Turn",
    "UsageMetadata",
    "ValidationError",
    "__version__",
    "estimate_tokens",
    "estimate_tokens_for_code",
    "estimate_tokens_mixed",
    "estimate_tokens_simple",
]
