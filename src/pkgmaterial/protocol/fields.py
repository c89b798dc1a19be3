"""Per-field read policies for plugin responses.

Each response kind declares a table of ``FieldRule`` entries naming the wire
field, the model attribute it fills, the expected type and whether the field
is mandatory. ``read_fields`` applies a table to a decoded JSON object in a
single pass, so every decode entry point shares the same absent/required and
type-checking behaviour.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

from pkgmaterial.protocol.exceptions import DecodeErrorKind, MessageDecodeError
from pkgmaterial.protocol.timestamps import TIMESTAMP_PATTERN, parse_timestamp

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")
# signed 32-bit, as plugins declare display-order
_INTEGER_MIN = -(2**31)
_INTEGER_MAX = 2**31 - 1
_INTEGER_MAX_DIGITS = len(str(_INTEGER_MAX))


class FieldType(str, Enum):
    """Wire types a response field can be declared with."""

    STRING = "string"
    BOOLEAN = "boolean"
    INTEGER = "integer"  # carried as a string, e.g. "3"
    TIMESTAMP = "timestamp"
    OBJECT = "object"
    LIST = "list"


@dataclass(frozen=True)
class FieldRule:
    """How a single response field is read.

    Attributes:
        name: Field name on the wire
        attr: Model attribute the value is stored under
        type: Expected wire type
        required: Absence fails the decode instead of leaving a default
        empty_is_absent: An empty string counts as absent
    """

    name: str
    attr: str
    type: FieldType
    required: bool = False
    empty_is_absent: bool = False


PROPERTY_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("value", "value", FieldType.STRING),
    FieldRule("default-value", "default_value", FieldType.STRING, empty_is_absent=True),
    FieldRule("part-of-identity", "part_of_identity", FieldType.BOOLEAN),
    FieldRule("secure", "secure", FieldType.BOOLEAN),
    FieldRule("required", "required", FieldType.BOOLEAN),
    FieldRule("display-name", "display_name", FieldType.STRING, empty_is_absent=True),
    FieldRule("display-order", "display_order", FieldType.INTEGER),
)

VALIDATION_ERROR_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("key", "key", FieldType.STRING, empty_is_absent=True),
    FieldRule("message", "message", FieldType.STRING, required=True),
)

CHECK_CONNECTION_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("status", "status", FieldType.STRING, required=True, empty_is_absent=True),
    FieldRule("messages", "messages", FieldType.LIST),
)

PACKAGE_REVISION_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("revision", "revision", FieldType.STRING, required=True, empty_is_absent=True),
    FieldRule("timestamp", "timestamp", FieldType.TIMESTAMP, required=True),
    FieldRule("user", "user", FieldType.STRING),
    FieldRule("revisionComment", "revision_comment", FieldType.STRING),
    FieldRule("trackbackUrl", "trackback_url", FieldType.STRING),
    FieldRule("data", "data", FieldType.OBJECT),
)


def _describe(rule: FieldRule, owner: str, key: str | None) -> str:
    if key is not None:
        return f"'{rule.name}' property for key '{key}'"
    return f"{owner} '{rule.name}'"


def _expected(rule: FieldRule) -> str:
    if rule.type is FieldType.TIMESTAMP:
        return f"string with format {TIMESTAMP_PATTERN}"
    return rule.type.value


def _type_mismatch(rule: FieldRule, owner: str, key: str | None) -> MessageDecodeError:
    return MessageDecodeError(
        DecodeErrorKind.FIELD_TYPE_MISMATCH,
        f"{_describe(rule, owner, key)} should be of type {_expected(rule)}",
        field=rule.name,
        key=key,
    )


def _convert(rule: FieldRule, raw: Any, owner: str, key: str | None) -> Any:
    """Check ``raw`` against the rule's type and return the typed value."""
    if rule.type is FieldType.STRING:
        if not isinstance(raw, str):
            raise _type_mismatch(rule, owner, key)
        return raw

    if rule.type is FieldType.BOOLEAN:
        if not isinstance(raw, bool):
            raise _type_mismatch(rule, owner, key)
        return raw

    if rule.type is FieldType.INTEGER:
        if not isinstance(raw, str) or not _INTEGER_RE.fullmatch(raw):
            raise _type_mismatch(rule, owner, key)
        if len(raw.lstrip("+-").lstrip("0")) > _INTEGER_MAX_DIGITS:
            raise _type_mismatch(rule, owner, key)
        value = int(raw)
        if not _INTEGER_MIN <= value <= _INTEGER_MAX:
            raise _type_mismatch(rule, owner, key)
        return value

    if rule.type is FieldType.TIMESTAMP:
        if not isinstance(raw, str):
            raise _type_mismatch(rule, owner, key)
        try:
            return parse_timestamp(raw)
        except ValueError as exc:
            raise MessageDecodeError(
                DecodeErrorKind.INVALID_TIMESTAMP_FORMAT,
                f"{_describe(rule, owner, key)} should be of type {_expected(rule)}",
                field=rule.name,
                key=key,
            ) from exc

    if rule.type is FieldType.OBJECT:
        if not isinstance(raw, dict):
            raise _type_mismatch(rule, owner, key)
        return raw

    if not isinstance(raw, list):
        raise _type_mismatch(rule, owner, key)
    return raw


def read_fields(
    payload: dict[str, Any],
    rules: tuple[FieldRule, ...],
    owner: str,
    key: str | None = None,
) -> dict[str, Any]:
    """Read every field declared in ``rules`` from ``payload``.

    Absent optional fields (missing, ``null`` or, where the rule allows, empty)
    are left out of the result so model defaults apply.

    Args:
        payload: Decoded JSON object
        rules: Field policy table for the response kind
        owner: Human-readable name of the object being read, used in messages
        key: Configuration property key when reading a property's attributes

    Returns:
        Typed values keyed by model attribute

    Raises:
        MessageDecodeError: A required field is absent or a field has the wrong type
    """
    values: dict[str, Any] = {}
    for rule in rules:
        raw = payload.get(rule.name)
        if rule.empty_is_absent and raw == "":
            raw = None
        if raw is None:
            if rule.required:
                raise MessageDecodeError(
                    DecodeErrorKind.MISSING_REQUIRED_FIELD,
                    f"{_describe(rule, owner, key)} is a required field",
                    field=rule.name,
                    key=key,
                )
            continue
        values[rule.attr] = _convert(rule, raw, owner, key)
    return values
