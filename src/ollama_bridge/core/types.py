"""Orchestration-side request and response types.

These mirror the chat schema the calling client speaks: ordered turns of
typed parts in, candidates of typed parts out. They are library-owned and
free of any vendor SDK types.
"""

from __future__ import annotations

import dataclasses
from enum import StrEnum
import typing

from ._validation import (
    _is_str_mapping,
    _is_tuple_of,
    _require,
    _require_optional_number,
)
from .cancellation import AbortSignal
from .parts import (
    CONTENT_PART_TYPES,
    ContentPart,
    FunctionCallPart,
    TextPart,
)

Role = typing.Literal["user", "model", "function"]
_ROLES: frozenset[str] = frozenset({"user", "model", "function"})


@dataclasses.dataclass(frozen=True, slots=True)
class Turn:
    """One role-tagged unit of conversation made of ordered parts."""

    role: Role
    parts: tuple[ContentPart, ...]

    def __post_init__(self) -> None:
        """Validate role and part types."""
        _require(
            condition=self.role in _ROLES,
            message=f"must be one of {sorted(_ROLES)}, got {self.role!r}",
            field_name="role",
        )
        if isinstance(self.parts, list):
            object.__setattr__(self, "parts", tuple(self.parts))
        _require(
            condition=_is_tuple_of(self.parts, CONTENT_PART_TYPES),
            message="must be a sequence of content parts",
            field_name="parts",
            exc=TypeError,
        )

    @classmethod
    def from_text(cls, text: str, *, role: Role = "user") -> Turn:
        """Build a single-part text turn."""
        return cls(role=role, parts=(TextPart(text),))

    def texts(self) -> list[str]:
        """Return the non-empty text parts, in order."""
        return [p.text for p in self.parts if isinstance(p, TextPart) and p.text]


@dataclasses.dataclass(frozen=True, slots=True)
class GenerationOptions:
    """Sampling controls. ``None`` (or an empty tuple) means "not set"."""

    temperature: float | None = None
    top_p: float | None = None
    top_k: int | None = None
    max_output_tokens: int | None = None
    stop_sequences: tuple[str, ...] = ()
    seed: int | None = None

    def __post_init__(self) -> None:
        """Validate numeric fields and stop sequences."""
        _require_optional_number(self.temperature, field_name="temperature")
        _require_optional_number(self.top_p, field_name="top_p")
        _require_optional_number(self.top_k, field_name="top_k", integral=True)
        _require_optional_number(
            self.max_output_tokens, field_name="max_output_tokens", integral=True
        )
        _require_optional_number(self.seed, field_name="seed", integral=True)
        if isinstance(self.stop_sequences, list):
            object.__setattr__(self, "stop_sequences", tuple(self.stop_sequences))
        _require(
            condition=_is_tuple_of(self.stop_sequences, str),
            message="must be a sequence of str",
            field_name="stop_sequences",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class FunctionDeclaration:
    """A function the model may call, described by a JSON schema."""

    name: str
    description: str | None = None
    parameters: typing.Mapping[str, typing.Any] | None = None

    def __post_init__(self) -> None:
        """Validate the declaration shape."""
        _require(
            condition=isinstance(self.name, str) and self.name != "",
            message="must be a non-empty str",
            field_name="name",
            exc=TypeError,
        )
        _require(
            condition=self.parameters is None or _is_str_mapping(self.parameters),
            message="must be a JSON schema mapping or None",
            field_name="parameters",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class Tool:
    """A group of function declarations."""

    function_declarations: tuple[FunctionDeclaration, ...] = ()

    def __post_init__(self) -> None:
        """Normalize and validate declarations."""
        if isinstance(self.function_declarations, list):
            object.__setattr__(
                self, "function_declarations", tuple(self.function_declarations)
            )
        _require(
            condition=_is_tuple_of(self.function_declarations, FunctionDeclaration),
            message="must be a sequence of FunctionDeclaration",
            field_name="function_declarations",
            exc=TypeError,
        )


def _normalize_contents(obj: typing.Any) -> None:
    contents = obj.contents
    if isinstance(contents, Turn):
        contents = (contents,)
    elif isinstance(contents, list):
        contents = tuple(contents)
    object.__setattr__(obj, "contents", contents)
    _require(
        condition=_is_tuple_of(contents, Turn),
        message="must be a Turn or a sequence of Turn",
        field_name="contents",
        exc=TypeError,
    )


@dataclasses.dataclass(frozen=True, slots=True)
class ChatRequest:
    """A generation request in the orchestration schema."""

    model: str
    contents: tuple[Turn, ...]
    system_instruction: Turn | None = None
    generation_options: GenerationOptions = dataclasses.field(
        default_factory=GenerationOptions
    )
    tools: tuple[Tool, ...] = ()
    #: Per-call cancellation, owned by the caller.
    abort_signal: AbortSignal | None = None

    def __post_init__(self) -> None:
        """Validate the request shape."""
        _require(
            condition=isinstance(self.model, str) and self.model.strip() != "",
            message="must be a non-empty str",
            field_name="model",
        )
        _normalize_contents(self)
        _require(
            condition=self.system_instruction is None
            or isinstance(self.system_instruction, Turn),
            message="must be a Turn or None",
            field_name="system_instruction",
            exc=TypeError,
        )
        if isinstance(self.tools, list):
            object.__setattr__(self, "tools", tuple(self.tools))
        _require(
            condition=_is_tuple_of(self.tools, Tool),
            message="must be a sequence of Tool",
            field_name="tools",
            exc=TypeError,
        )
        _require(
            condition=self.abort_signal is None
            or isinstance(self.abort_signal, AbortSignal),
            message="must be an AbortSignal or None",
            field_name="abort_signal",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class CountTokensRequest:
    """Token counting input; no network call is made for it."""

    model: str
    contents: tuple[Turn, ...]
    system_instruction: Turn | None = None

    def __post_init__(self) -> None:
        """Validate the request shape."""
        _normalize_contents(self)


@dataclasses.dataclass(frozen=True, slots=True)
class EmbedRequest:
    """Embedding input: the text parts of all turns are embedded as one prompt."""

    model: str
    contents: tuple[Turn, ...]
    abort_signal: AbortSignal | None = None

    def __post_init__(self) -> None:
        """Validate the request shape."""
        _require(
            condition=isinstance(self.model, str) and self.model.strip() != "",
            message="must be a non-empty str",
            field_name="model",
        )
        _normalize_contents(self)


class FinishReason(StrEnum):
    """Why generation stopped."""

    STOP = "STOP"
    MAX_TOKENS = "MAX_TOKENS"


@dataclasses.dataclass(frozen=True, slots=True)
class Content:
    """The content of a response candidate."""

    parts: tuple[ContentPart, ...] = ()
    role: str = "model"


@dataclasses.dataclass(frozen=True, slots=True)
class Candidate:
    """One generated answer."""

    content: Content
    finish_reason: FinishReason | None = None
    index: int = 0


@dataclasses.dataclass(frozen=True, slots=True)
class UsageMetadata:
    """Token accounting reported by the server."""

    prompt_token_count: int = 0
    candidates_token_count: int = 0

    def __post_init__(self) -> None:
        """Validate counters are non-negative ints."""
        for name in ("prompt_token_count", "candidates_token_count"):
            value = getattr(self, name)
            _require(
                condition=isinstance(value, int) and value >= 0,
                message=f"must be an int >= 0, got {value!r}",
                field_name=name,
            )

    @property
    def total_token_count(self) -> int:
        """Prompt plus candidate tokens."""
        return self.prompt_token_count + self.candidates_token_count


@dataclasses.dataclass(frozen=True, slots=True)
class ChatResponse:
    """A full response, or one fragment of a streamed response."""

    candidates: tuple[Candidate, ...]
    usage_metadata: UsageMetadata | None = None
    model_version: str | None = None

    @property
    def parts(self) -> tuple[ContentPart, ...]:
        """Parts of the first candidate (empty when there is none)."""
        if not self.candidates:
            return ()
        return self.candidates[0].content.parts

    @property
    def finish_reason(self) -> FinishReason | None:
        """Finish reason of the first candidate."""
        if not self.candidates:
            return None
        return self.candidates[0].finish_reason

    @property
    def text(self) -> str:
        """Concatenated text of the first candidate."""
        return "".join(p.text for p in self.parts if isinstance(p, TextPart))

    @property
    def function_calls(self) -> tuple[FunctionCallPart, ...]:
        """Function calls requested by the first candidate."""
        return tuple(p for p in self.parts if isinstance(p, FunctionCallPart))


@dataclasses.dataclass(frozen=True, slots=True)
class CountTokensResponse:
    """Estimated token count."""

    total_tokens: int


@dataclasses.dataclass(frozen=True, slots=True)
class ContentEmbedding:
    """One embedding vector."""

    values: tuple[float, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class EmbedResponse:
    """Embedding results, one per embedded input."""

    embeddings: tuple[ContentEmbedding, ...]


@dataclasses.dataclass(frozen=True, slots=True)
class ModelInfo:
    """A model installed on the local server."""

    name: str
    modified_at: str | None = None
    size: int | None = None
    digest: str | None = None
