"""Protocol layer exceptions.

Every failure raised while decoding a plugin response is surfaced as a single
``MessageDecodeError``. The ``kind`` tag lets callers branch on the failure
category while the message stays human readable for logs and error banners.
"""

from __future__ import annotations

from enum import Enum

DECODE_ERROR_PREFIX = "Unable to de-serialize json response."


class DecodeErrorKind(str, Enum):
    """Categories of response decoding failures."""

    MALFORMED_PAYLOAD = "malformed_payload"
    UNEXPECTED_SHAPE = "unexpected_shape"
    EMPTY_PAYLOAD = "empty_payload"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    FIELD_TYPE_MISMATCH = "field_type_mismatch"
    PROPERTY_NOT_A_MAP = "property_not_a_map"
    EMPTY_PROPERTY_KEY = "empty_property_key"
    INVALID_TIMESTAMP_FORMAT = "invalid_timestamp_format"
    MESSAGE_TYPE_MISMATCH = "message_type_mismatch"
    VALIDATION_ERROR_NOT_A_MAP = "validation_error_not_a_map"


class ProtocolError(Exception):
    """Base exception for protocol layer errors.

    Args:
        message: Human-readable error description
        kind: Failure category (optional)
        field: Wire name of the offending field (optional)
        key: Configuration property key the field belongs to (optional)

    Attributes:
        message: Error message
        kind: Failure category (or None)
        field: Offending field (or None)
        key: Offending property key (or None)
    """

    def __init__(
        self,
        message: str,
        kind: DecodeErrorKind | None = None,
        field: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.kind = kind
        self.field = field
        self.key = key

    def __str__(self) -> str:
        return self.message


class MessageDecodeError(ProtocolError):
    """Plugin response could not be decoded into a typed result.

    The message always starts with ``DECODE_ERROR_PREFIX`` followed by the
    detail naming the field and the expected type or shape.

    Example:
        >>> raise MessageDecodeError(
        ...     DecodeErrorKind.FIELD_TYPE_MISMATCH,
        ...     "'secure' property for key 'url' should be of type boolean",
        ...     field="secure",
        ...     key="url",
        ... )
    """

    def __init__(
        self,
        kind: DecodeErrorKind,
        detail: str,
        field: str | None = None,
        key: str | None = None,
    ) -> None:
        super().__init__(f"{DECODE_ERROR_PREFIX} {detail}", kind=kind, field=field, key=key)
        self.kind: DecodeErrorKind = kind
        self.detail = detail
