"""Column conversion rules producing DynamoDB attribute values.

Each rule maps raw field text to a low-level tagged value such as
``{"S": "text"}`` or ``{"N": "1.5"}``. Rules never raise: text a rule
cannot interpret yields a lenient default plus a reason string so the
caller can report it.
"""

from __future__ import annotations

import base64
import json
from typing import Any, Callable, Mapping

from core.types import AttributeValue, FieldKind

ConversionOutcome = tuple[AttributeValue, str | None]

_BOOLEAN_VALUES = {"true": True, "false": False}
_SCALAR_STRING_TAGS = ("S", "N")
_STRING_SET_TAGS = ("SS", "NS")
# DynamoDB rejects documents nested deeper than this.
MAX_NESTING_DEPTH = 32


class _InvalidAttributeValue(ValueError):
    """Raised while walking a malformed tagged value."""


def string_value(raw: str) -> ConversionOutcome:
    return {"S": raw}, None


def number_value(raw: str) -> ConversionOutcome:
    # Numbers are passed through as decimal text; the store validates them.
    return {"N": raw}, None


def boolean_value(raw: str) -> ConversionOutcome:
    parsed = _BOOLEAN_VALUES.get(raw.lower())
    if parsed is None:
        return {"BOOL": False}, f"expected true or false, got '{raw}'"
    return {"BOOL": parsed}, None


def map_value(raw: str) -> ConversionOutcome:
    """Parse a JSON object of name to tagged attribute value."""
    try:
        payload = json.loads(raw)
        members = _parse_members(payload)
    except json.JSONDecodeError as error:
        return {"M": {}}, f"invalid JSON: {error.msg}"
    except _InvalidAttributeValue as error:
        return {"M": {}}, str(error)
    except RecursionError:
        return {"M": {}}, "invalid JSON: nested too deeply"
    return {"M": members}, None


def binary_value(raw: str) -> ConversionOutcome:
    # b64decode raises binascii.Error for bad padding and ValueError for non-ASCII text.
    try:
        return {"B": base64.b64decode(raw, validate=True)}, None
    except ValueError as error:
        return {"B": b""}, f"invalid base64: {error}"


_CONVERTERS: Mapping[FieldKind, Callable[[str], ConversionOutcome]] = {
    FieldKind.STRING: string_value,
    FieldKind.NUMBER: number_value,
    FieldKind.BOOLEAN: boolean_value,
    FieldKind.MAP: map_value,
    FieldKind.BINARY: binary_value,
}


def convert_field(kind: FieldKind, raw: str) -> ConversionOutcome:
    """Convert raw field text with the rule for ``kind``.

    Returns:
        Attribute value and, when a lenient default was used, the reason.
    """
    return _CONVERTERS[kind](raw)


def _parse_members(payload: object) -> dict[str, AttributeValue]:
    if not isinstance(payload, dict):
        raise _InvalidAttributeValue(
            f"expected a JSON object of tagged values, got {type(payload).__name__}"
        )
    return {
        str(name): _parse_attribute_value(value, str(name), depth=1)
        for name, value in payload.items()
    }


def _parse_attribute_value(value: object, path: str, depth: int) -> AttributeValue:
    """Validate one tagged value, recursing into maps and lists."""
    if depth > MAX_NESTING_DEPTH:
        raise _InvalidAttributeValue(
            f"'{path}' is nested deeper than {MAX_NESTING_DEPTH} levels"
        )
    if not isinstance(value, dict) or len(value) != 1:
        raise _InvalidAttributeValue(f"'{path}' must be an object with exactly one type tag")
    tag, inner = next(iter(value.items()))
    if tag in _SCALAR_STRING_TAGS and isinstance(inner, str):
        return {tag: inner}
    if tag == "BOOL" and isinstance(inner, bool):
        return {tag: inner}
    if tag == "NULL" and inner is True:
        return {tag: True}
    if tag == "B" and isinstance(inner, str):
        return {tag: _decode_base64(inner, path)}
    if tag == "M":
        return {tag: {name: _parse_attribute_value(member, f"{path}.{name}", depth + 1)
                      for name, member in _expect_object(inner, path).items()}}
    if tag == "L":
        return {tag: [_parse_attribute_value(member, f"{path}[{index}]", depth + 1)
                      for index, member in enumerate(_expect_list(inner, path))]}
    if tag in _STRING_SET_TAGS:
        return {tag: _expect_string_list(inner, path)}
    if tag == "BS":
        return {tag: [_decode_base64(member, path) for member in _expect_string_list(inner, path)]}
    raise _InvalidAttributeValue(f"'{path}' has unsupported type tag '{tag}'")


def _expect_object(value: object, path: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise _InvalidAttributeValue(f"'{path}' map value must be an object")
    return value


def _expect_list(value: object, path: str) -> list[Any]:
    if not isinstance(value, list):
        raise _InvalidAttributeValue(f"'{path}' list value must be an array")
    return value


def _expect_string_list(value: object, path: str) -> list[str]:
    members = _expect_list(value, path)
    if not all(isinstance(member, str) for member in members):
        raise _InvalidAttributeValue(f"'{path}' set members must be strings")
    return list(members)


def _decode_base64(value: str, path: str) -> bytes:
    try:
        return base64.b64decode(value, validate=True)
    except ValueError as error:
        raise _InvalidAttributeValue(f"'{path}' binary value is not base64: {error}") from error
