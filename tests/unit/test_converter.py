"""Schema conversion between chat turns and Ollama messages."""

from __future__ import annotations

import json
from types import MappingProxyType

import pytest

from ollama_bridge.core.parts import (
    FunctionCallPart,
    FunctionResponsePart,
    InlineImagePart,
    TextPart,
)
from ollama_bridge.core.types import (
    ChatRequest,
    FinishReason,
    FunctionDeclaration,
    GenerationOptions,
    Tool,
    Turn,
)
from ollama_bridge.ollama.converter import (
    fragment_has_content,
    to_chat_chunk,
    to_chat_response,
    to_local_request,
    turn_to_message,
)
from ollama_bridge.ollama.models import LocalChunk, LocalResponse
from tests.helpers import chat_chunk, full_response

pytestmark = pytest.mark.contract

MODEL = "llama3.2"


def _payload(**kwargs) -> dict:
    kwargs.setdefault("model", MODEL)
    stream = kwargs.pop("stream", False)
    return to_local_request(ChatRequest(**kwargs), stream=stream).to_payload()


# =============================================================================
# Request Direction
# =============================================================================


def test_system_instruction_and_user_turn_round_trip() -> None:
    payload = _payload(
        contents=[Turn.from_text("Hi")],
        system_instruction=Turn.from_text("Be concise"),
    )

    assert payload == {
        "model": MODEL,
        "messages": [
            {"role": "system", "content": "Be concise"},
            {"role": "user", "content": "Hi"},
        ],
        "stream": False,
    }


def test_stream_flag_is_forwarded() -> None:
    assert _payload(contents=[Turn.from_text("Hi")], stream=True)["stream"] is True


def test_empty_system_instruction_is_not_sent() -> None:
    payload = _payload(
        contents=[Turn.from_text("Hi")],
        system_instruction=Turn("user", (TextPart(""),)),
    )
    assert [m["role"] for m in payload["messages"]] == ["user"]


@pytest.mark.parametrize(
    ("role", "expected"),
    [("user", "user"), ("model", "assistant"), ("function", "tool")],
)
def test_role_mapping(role: str, expected: str) -> None:
    message = turn_to_message(Turn.from_text("x", role=role))
    assert message is not None
    assert message.role == expected


def test_text_parts_join_with_newlines_skipping_empty_ones() -> None:
    turn = Turn("user", (TextPart("one"), TextPart(""), TextPart("two")))
    message = turn_to_message(turn)
    assert message is not None
    assert message.content == "one\ntwo"


def test_only_image_mime_types_are_forwarded() -> None:
    turn = Turn(
        "user",
        (
            TextPart("What is this?"),
            InlineImagePart("image/png", "iVBORw0KGgo="),
            InlineImagePart("application/pdf", "JVBERi0x"),
            InlineImagePart("IMAGE/JPEG", "/9j/4AAQ"),
        ),
    )
    message = turn_to_message(turn)

    assert message is not None
    assert message.images == ["iVBORw0KGgo=", "/9j/4AAQ"]
    assert message.to_payload() == {
        "role": "user",
        "content": "What is this?",
        "images": ["iVBORw0KGgo=", "/9j/4AAQ"],
    }


def test_image_only_turn_is_kept() -> None:
    message = turn_to_message(Turn("user", (InlineImagePart("image/png", "AAAA"),)))
    assert message is not None
    assert message.content == ""


def test_turn_reducing_to_nothing_is_dropped() -> None:
    payload = _payload(
        contents=[
            Turn.from_text("Hi"),
            Turn("model", (TextPart(""), InlineImagePart("text/plain", "eA=="))),
            Turn.from_text("Still there?"),
        ]
    )
    assert [m["content"] for m in payload["messages"]] == ["Hi", "Still there?"]


def test_function_call_becomes_tool_call() -> None:
    turn = Turn("model", (FunctionCallPart("get_weather", {"city": "Oslo"}),))
    message = turn_to_message(turn)

    assert message is not None
    assert message.to_payload() == {
        "role": "assistant",
        "content": "",
        "tool_calls": [
            {"function": {"name": "get_weather", "arguments": {"city": "Oslo"}}}
        ],
    }


def test_nested_tool_call_arguments_become_plain_json() -> None:
    args = {
        "filter": MappingProxyType({"city": "Oslo", "days": (1, 2)}),
        "units": ("metric",),
    }
    turn = Turn("model", (FunctionCallPart("forecast", args),))
    payload = _payload(contents=[turn])

    arguments = payload["messages"][0]["tool_calls"][0]["function"]["arguments"]
    assert arguments == {
        "filter": {"city": "Oslo", "days": [1, 2]},
        "units": ["metric"],
    }
    json.dumps(payload)


def test_function_response_forces_tool_role_and_compact_json() -> None:
    turn = Turn(
        "user",
        (FunctionResponsePart({"temp_c": 21, "sky": "klar"}, name="get_weather"),),
    )
    message = turn_to_message(turn)

    assert message is not None
    assert message.role == "tool"
    assert message.content == '{"temp_c":21,"sky":"klar"}'
    assert json.loads(message.content) == {"temp_c": 21, "sky": "klar"}


def test_function_response_with_text_keeps_part_order() -> None:
    turn = Turn(
        "user",
        (
            TextPart("before"),
            FunctionResponsePart({"ok": True}),
            TextPart("after"),
        ),
    )
    message = turn_to_message(turn)

    assert message is not None
    assert message.role == "tool"
    assert message.content == 'before\n{"ok":true}\nafter'


def test_unknown_part_is_rejected_not_dropped() -> None:
    turn = Turn.from_text("x")
    object.__setattr__(turn, "parts", (object(),))

    with pytest.raises(TypeError, match="Unsupported content part"):
        turn_to_message(turn)


def test_unset_options_are_omitted() -> None:
    payload = _payload(contents=[Turn.from_text("Hi")])
    assert "options" not in payload
    assert "tools" not in payload


def test_only_set_options_are_forwarded() -> None:
    payload = _payload(
        contents=[Turn.from_text("Hi")],
        generation_options=GenerationOptions(
            temperature=0.0, max_output_tokens=128, stop_sequences=("###",)
        ),
    )
    assert payload["options"] == {"temperature": 0.0, "num_predict": 128, "stop": ["###"]}


def test_all_options_map_to_ollama_names() -> None:
    payload = _payload(
        contents=[Turn.from_text("Hi")],
        generation_options=GenerationOptions(
            temperature=0.7,
            top_p=0.9,
            top_k=40,
            max_output_tokens=256,
            stop_sequences=("a", "b"),
            seed=42,
        ),
    )
    assert payload["options"] == {
        "temperature": 0.7,
        "top_p": 0.9,
        "top_k": 40,
        "num_predict": 256,
        "stop": ["a", "b"],
        "seed": 42,
    }


def test_tool_groups_are_flattened_with_defaults() -> None:
    schema = {"type": "object", "properties": {"city": {"type": "string"}}}
    payload = _payload(
        contents=[Turn.from_text("Weather?")],
        tools=[
            Tool(
                [
                    FunctionDeclaration("get_weather", "Look up weather", schema),
                    FunctionDeclaration("now"),
                ]
            ),
            Tool([FunctionDeclaration("noop", parameters={})]),
        ],
    )

    assert payload["tools"] == [
        {
            "type": "function",
            "function": {
                "name": "get_weather",
                "description": "Look up weather",
                "parameters": schema,
            },
        },
        {
            "type": "function",
            "function": {"name": "now", "description": "", "parameters": {}},
        },
        {
            "type": "function",
            "function": {"name": "noop", "description": "", "parameters": {}},
        },
    ]


def test_empty_tool_groups_omit_tools_field() -> None:
    payload = _payload(contents=[Turn.from_text("Hi")], tools=[Tool()])
    assert "tools" not in payload


# =============================================================================
# Response Direction
# =============================================================================


def test_full_response_conversion() -> None:
    response = to_chat_response(LocalResponse.model_validate(full_response("Hello")))

    assert response.parts == (TextPart("Hello"),)
    assert response.finish_reason is FinishReason.STOP
    assert response.usage_metadata is not None
    assert response.usage_metadata.prompt_token_count == 5
    assert response.usage_metadata.candidates_token_count == 3
    assert response.usage_metadata.total_token_count == 8
    assert response.model_version == MODEL


@pytest.mark.parametrize(
    ("done_reason", "expected"),
    [
        ("stop", FinishReason.STOP),
        ("length", FinishReason.MAX_TOKENS),
        ("load", FinishReason.STOP),
        (None, FinishReason.STOP),
    ],
)
def test_done_reason_mapping(done_reason, expected) -> None:
    body = full_response()
    body["done_reason"] = done_reason
    assert to_chat_response(LocalResponse.model_validate(body)).finish_reason is expected


def test_missing_counters_default_to_zero() -> None:
    body = full_response()
    del body["prompt_eval_count"], body["eval_count"]
    usage = to_chat_response(LocalResponse.model_validate(body)).usage_metadata

    assert usage is not None
    assert usage.total_token_count == 0


def test_tool_calls_follow_text_in_response() -> None:
    body = full_response(
        "Checking.",
        tool_calls=[{"function": {"name": "get_weather", "arguments": {"city": "Oslo"}}}],
    )
    response = to_chat_response(LocalResponse.model_validate(body))

    assert response.parts == (
        TextPart("Checking."),
        FunctionCallPart("get_weather", {"city": "Oslo"}),
    )
    assert response.function_calls == (FunctionCallPart("get_weather", {"city": "Oslo"}),)


def test_empty_content_yields_no_text_part() -> None:
    response = to_chat_response(LocalResponse.model_validate(full_response("")))
    assert response.parts == ()
    assert response.text == ""


def test_intermediate_chunk_has_no_finish_reason_or_usage() -> None:
    fragment = to_chat_chunk(LocalChunk.model_validate(chat_chunk("Hel")))

    assert fragment.text == "Hel"
    assert fragment.finish_reason is None
    assert fragment.usage_metadata is None
    assert fragment_has_content(fragment)


def test_terminal_chunk_carries_finish_reason_and_usage() -> None:
    record = chat_chunk(
        "", done=True, done_reason="length", prompt_eval_count=7, eval_count=2
    )
    fragment = to_chat_chunk(LocalChunk.model_validate(record))

    assert fragment.finish_reason is FinishReason.MAX_TOKENS
    assert fragment.usage_metadata is not None
    assert fragment.usage_metadata.total_token_count == 9
    assert not fragment_has_content(fragment)


def test_terminal_chunk_without_message() -> None:
    fragment = to_chat_chunk(LocalChunk.model_validate({"model": MODEL, "done": True}))

    assert fragment.parts == ()
    assert fragment.finish_reason is FinishReason.STOP


def test_stream_chunk_tool_calls_become_function_calls() -> None:
    record = chat_chunk("")
    record["message"]["tool_calls"] = [{"function": {"name": "now", "arguments": {}}}]
    fragment = to_chat_chunk(LocalChunk.model_validate(record))

    assert fragment.function_calls == (FunctionCallPart("now"),)
    assert fragment_has_content(fragment)
