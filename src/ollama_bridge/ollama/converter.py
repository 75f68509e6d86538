"""Translate between the orchestration schema and the Ollama chat schema.

Request direction: ordered turns of typed parts become flat role/content
messages. Response direction: a full response or a single stream record
becomes a one-candidate ``ChatResponse``. All functions are pure.
"""

from __future__ import annotations

from collections.abc import Mapping
import json
from typing import TYPE_CHECKING, Any

from ollama_bridge.core.parts import (
    ContentPart,
    FunctionCallPart,
    FunctionResponsePart,
    InlineImagePart,
    TextPart,
    has_content,
)
from ollama_bridge.core.types import (
    Candidate,
    ChatRequest,
    ChatResponse,
    Content,
    FinishReason,
    GenerationOptions,
    Turn,
    UsageMetadata,
)
from ollama_bridge.ollama.models import (
    LocalChunk,
    LocalMessage,
    LocalOptions,
    LocalRequest,
    LocalRole,
    LocalTool,
    LocalToolCall,
    LocalToolCallFunction,
    LocalToolFunction,
)

if TYPE_CHECKING:
    from ollama_bridge.core.types import Tool
    from ollama_bridge.ollama.models import LocalResponse

_ROLE_MAP: dict[str, LocalRole] = {
    "user": "user",
    "model": "assistant",
    "function": "tool",
}


# --- Request direction ---


def to_local_request(request: ChatRequest, *, stream: bool) -> LocalRequest:
    """Convert a chat request into the body of ``POST /api/chat``."""
    messages: list[LocalMessage] = []

    if request.system_instruction is not None:
        system_text = extract_text(request.system_instruction)
        if system_text:
            messages.append(LocalMessage(role="system", content=system_text))

    for turn in request.contents:
        message = turn_to_message(turn)
        if message is not None:
            messages.append(message)

    fields: dict[str, Any] = {
        "model": request.model,
        "messages": messages,
        "stream": stream,
    }
    options = to_local_options(request.generation_options)
    if options is not None:
        fields["options"] = options
    tools = to_local_tools(request.tools)
    if tools:
        fields["tools"] = tools
    return LocalRequest(**fields)


def extract_text(turn: Turn) -> str:
    """Join the non-empty text parts of *turn* with newlines."""
    return "\n".join(turn.texts())


def turn_to_message(turn: Turn) -> LocalMessage | None:
    """Convert one turn, or return None when nothing would be sent.

    Text parts are joined with newlines, ``image/*`` inline data is collected
    into ``images`` and function calls into ``tool_calls``. A function
    response forces the ``tool`` role and contributes its payload as compact
    JSON, in part order with any text.
    """
    role = _ROLE_MAP[turn.role]
    texts: list[str] = []
    images: list[str] = []
    tool_calls: list[LocalToolCall] = []

    for part in turn.parts:
        match part:
            case TextPart(text=text):
                if text:
                    texts.append(text)
            case InlineImagePart():
                if part.is_image:
                    images.append(part.data)
            case FunctionCallPart(name=name, args=args):
                tool_calls.append(
                    LocalToolCall(
                        function=LocalToolCallFunction(
                            name=name, arguments=_to_plain(args)
                        )
                    )
                )
            case FunctionResponsePart(response=response):
                role = "tool"
                texts.append(_compact_json(response))
            case _:
                raise TypeError(f"Unsupported content part: {type(part).__name__}")

    content = "\n".join(texts)
    if not content and not images and not tool_calls:
        return None

    fields: dict[str, Any] = {"role": role, "content": content}
    if images:
        fields["images"] = images
    if tool_calls:
        fields["tool_calls"] = tool_calls
    return LocalMessage(**fields)


def to_local_options(options: GenerationOptions) -> LocalOptions | None:
    """Copy only the caller-set generation options, or return None."""
    fields: dict[str, Any] = {}
    if options.temperature is not None:
        fields["temperature"] = options.temperature
    if options.top_p is not None:
        fields["top_p"] = options.top_p
    if options.top_k is not None:
        fields["top_k"] = options.top_k
    if options.max_output_tokens is not None:
        fields["num_predict"] = options.max_output_tokens
    if options.stop_sequences:
        fields["stop"] = list(options.stop_sequences)
    if options.seed is not None:
        fields["seed"] = options.seed
    return LocalOptions(**fields) if fields else None


def to_local_tools(tools: tuple[Tool, ...]) -> list[LocalTool]:
    """Flatten tool groups into one Ollama tool entry per declaration."""
    return [
        LocalTool(
            type="function",
            function=LocalToolFunction(
                name=decl.name,
                description=decl.description or "",
                parameters=_to_plain(decl.parameters) if decl.parameters else {},
            ),
        )
        for tool in tools
        for decl in tool.function_declarations
    ]


# --- Response direction ---


def to_chat_response(response: LocalResponse) -> ChatResponse:
    """Convert a full (non-streamed) Ollama chat response."""
    return _build_response(
        response.message,
        finish_reason=_finish_reason(response.done_reason),
        usage=_usage(response),
        model=response.model,
    )


def to_chat_chunk(chunk: LocalChunk) -> ChatResponse:
    """Convert one streamed record.

    The finish reason and usage are attached only to the terminal record.
    """
    if chunk.done:
        return _build_response(
            chunk.message,
            finish_reason=_finish_reason(chunk.done_reason),
            usage=_usage(chunk),
            model=chunk.model,
        )
    return _build_response(
        chunk.message, finish_reason=None, usage=None, model=chunk.model
    )


def fragment_has_content(fragment: ChatResponse) -> bool:
    """Return True when a fragment carries at least one non-empty part."""
    return any(has_content(part) for part in fragment.parts)


def _build_response(
    message: LocalMessage | None,
    *,
    finish_reason: FinishReason | None,
    usage: UsageMetadata | None,
    model: str,
) -> ChatResponse:
    parts: list[ContentPart] = []
    if message is not None:
        if message.content:
            parts.append(TextPart(message.content))
        for call in message.tool_calls or ():
            parts.append(
                FunctionCallPart(name=call.function.name, args=call.function.arguments)
            )

    candidate = Candidate(
        content=Content(parts=tuple(parts), role="model"),
        finish_reason=finish_reason,
        index=0,
    )
    return ChatResponse(
        candidates=(candidate,),
        usage_metadata=usage,
        model_version=model or None,
    )


def _finish_reason(done_reason: str | None) -> FinishReason:
    # Anything other than a length cutoff is a normal stop downstream.
    if done_reason == "length":
        return FinishReason.MAX_TOKENS
    return FinishReason.STOP


def _usage(record: LocalChunk) -> UsageMetadata:
    return UsageMetadata(
        prompt_token_count=record.prompt_eval_count or 0,
        candidates_token_count=record.eval_count or 0,
    )


def _compact_json(payload: Any) -> str:
    return json.dumps(_to_plain(payload), separators=(",", ":"), ensure_ascii=False)


def _to_plain(value: Any) -> Any:
    """Turn nested mappings/sequences into plain dicts/lists for JSON."""
    if isinstance(value, Mapping):
        return {str(k): _to_plain(v) for k, v in value.items()}
    if isinstance(value, list | tuple):
        return [_to_plain(v) for v in value]
    return value
