"""Internal validation helpers used across core modules.

These helpers centralize validation logic for type safety and consistent
error messages in dataclass ``__post_init__`` hooks.
"""

from __future__ import annotations

from collections.abc import Mapping
import typing


def _is_tuple_of(value: object, typ: type | tuple[type, ...]) -> bool:
    return isinstance(value, tuple) and all(isinstance(v, typ) for v in value)


def _is_str_mapping(value: object) -> bool:
    return isinstance(value, Mapping) and all(isinstance(k, str) for k in value)


def _is_json_value(value: object) -> bool:
    """Whether *value* is made only of JSON-encodable scalars and containers."""
    if value is None or isinstance(value, str | int | float | bool):
        return True
    if isinstance(value, Mapping):
        return _is_str_mapping(value) and all(
            _is_json_value(v) for v in value.values()
        )
    if isinstance(value, list | tuple):
        return all(_is_json_value(v) for v in value)
    return False


def _require(
    *,
    condition: bool,
    message: str,
    exc: type[Exception] = ValueError,
    field_name: str | None = None,
) -> None:
    """Centralized validation with optional field context for clearer errors."""
    if not condition:
        if field_name:
            enhanced_message = f"{field_name}: {message}"
            raise exc(enhanced_message)
        raise exc(message)


def _require_optional_number(
    value: typing.Any,
    *,
    field_name: str,
    integral: bool = False,
) -> None:
    """Validate an optional numeric field (bools are rejected)."""
    if value is None:
        return
    allowed: type | tuple[type, ...] = int if integral else (int, float)
    kind = "an int" if integral else "a number"
    _require(
        condition=isinstance(value, allowed) and not isinstance(value, bool),
        message=f"must be {kind} or None, got {value!r}",
        field_name=field_name,
        exc=TypeError,
    )
