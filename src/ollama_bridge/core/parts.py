"""Content parts: the atomic units a turn is made of.

A part is exactly one of text, inline image data, a function call requested
by the model, or the result of such a call. Converters match on these types
exhaustively, so an unexpected object is an error rather than a silent drop.
"""

from __future__ import annotations

import dataclasses
import typing

from ._validation import _is_json_value, _is_str_mapping, _require


@dataclasses.dataclass(frozen=True, slots=True)
class TextPart:
    """Plain text."""

    text: str

    def __post_init__(self) -> None:
        """Validate TextPart invariants."""
        _require(
            condition=isinstance(self.text, str),
            message="text must be a str",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class InlineImagePart:
    """Inline binary data, base64-encoded, tagged with its MIME type.

    Only ``image/*`` data is forwarded to the local server; other MIME types
    are accepted here but contribute nothing to the converted message.
    """

    mime_type: str
    data: str

    def __post_init__(self) -> None:
        """Validate InlineImagePart invariants."""
        _require(
            condition=isinstance(self.mime_type, str) and self.mime_type.strip() != "",
            message="mime_type must be a non-empty str",
            exc=TypeError,
        )
        _require(
            condition=isinstance(self.data, str),
            message="data must be a base64 str",
            exc=TypeError,
        )

    @property
    def is_image(self) -> bool:
        """Whether the MIME type denotes an image."""
        return self.mime_type.lower().startswith("image/")


@dataclasses.dataclass(frozen=True, slots=True)
class FunctionCallPart:
    """A function (tool) call requested by the model."""

    name: str
    args: typing.Mapping[str, typing.Any] = dataclasses.field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate FunctionCallPart invariants."""
        _require(
            condition=isinstance(self.name, str) and self.name != "",
            message="name must be a non-empty str",
            exc=TypeError,
        )
        _require(
            condition=_is_str_mapping(self.args),
            message="args must be a mapping with str keys",
            exc=TypeError,
        )


@dataclasses.dataclass(frozen=True, slots=True)
class FunctionResponsePart:
    """The result of a function call, sent back to the model."""

    response: typing.Mapping[str, typing.Any]
    name: str | None = None

    def __post_init__(self) -> None:
        """Validate FunctionResponsePart invariants."""
        _require(
            condition=_is_str_mapping(self.response),
            message="response must be a mapping with str keys",
            exc=TypeError,
        )
        _require(
            condition=_is_json_value(self.response),
            message="response must hold only JSON-encodable values",
            exc=TypeError,
        )
        _require(
            condition=self.name is None or isinstance(self.name, str),
            message="name must be a str or None",
            exc=TypeError,
        )


type ContentPart = TextPart | InlineImagePart | FunctionCallPart | FunctionResponsePart

CONTENT_PART_TYPES: tuple[type, ...] = (
    TextPart,
    InlineImagePart,
    FunctionCallPart,
    FunctionResponsePart,
)


def has_content(part: ContentPart) -> bool:
    """Return True when *part* carries something a caller would act on."""
    match part:
        case TextPart(text=text):
            return text != ""
        case InlineImagePart(data=data):
            return data != ""
        case FunctionCallPart() | FunctionResponsePart():
            return True
        case _:
            raise TypeError(f"Unsupported content part: {type(part).__name__}")
