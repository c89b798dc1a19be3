"""Response decoding for package material plugin calls.

Each ``decode_*`` function turns the raw text returned by a plugin into a
typed result in a single pass. Any problem with the payload raises
``MessageDecodeError``; a partially populated result is never returned.
"""

from __future__ import annotations

import json
from typing import Any, TypeVar

from pkgmaterial.protocol.exceptions import DecodeErrorKind, MessageDecodeError
from pkgmaterial.protocol.fields import (
    CHECK_CONNECTION_FIELDS,
    PACKAGE_REVISION_FIELDS,
    PROPERTY_FIELDS,
    VALIDATION_ERROR_FIELDS,
    read_fields,
)
from pkgmaterial.protocol.models import (
    CheckConnectionResult,
    ConfigurationProperty,
    ConfigurationSet,
    PackageConfiguration,
    PackageRevision,
    RepositoryConfiguration,
    ValidationError,
    ValidationResult,
)

ConfigurationT = TypeVar("ConfigurationT", bound=ConfigurationSet)

SUCCESS_STATUS = "success"


def parse_body(body: str | bytes | None) -> Any:
    """Parse raw response text.

    Returns:
        The decoded JSON value, or None when the body is absent or blank

    Raises:
        MessageDecodeError: The body is not valid UTF-8 JSON
    """
    if body is None:
        return None
    if isinstance(body, bytes):
        try:
            body = body.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MessageDecodeError(
                DecodeErrorKind.MALFORMED_PAYLOAD,
                f"Response body is not valid UTF-8: {exc.reason}",
            ) from exc
    if not body.strip():
        return None
    try:
        return json.loads(body, parse_constant=_reject_constant)
    except json.JSONDecodeError as exc:
        raise MessageDecodeError(
            DecodeErrorKind.MALFORMED_PAYLOAD,
            f"Response body is not valid JSON: {exc.msg} (line {exc.lineno}, column {exc.colno})",
        ) from exc
    except ValueError as exc:
        # non-standard constants and integers past the interpreter's digit limit
        raise MessageDecodeError(
            DecodeErrorKind.MALFORMED_PAYLOAD,
            f"Response body is not valid JSON: {exc}",
        ) from exc
    except RecursionError as exc:
        raise MessageDecodeError(
            DecodeErrorKind.MALFORMED_PAYLOAD,
            "Response body is not valid JSON: nesting too deep",
        ) from exc


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not a JSON value")


def _require_map(body: str | bytes | None, subject: str) -> dict[str, Any]:
    data = parse_body(body)
    if data is None:
        raise MessageDecodeError(DecodeErrorKind.EMPTY_PAYLOAD, "Empty response body")
    if not isinstance(data, dict):
        raise MessageDecodeError(
            DecodeErrorKind.UNEXPECTED_SHAPE,
            f"{subject} should be returned as a map, got {_json_type(data)}",
        )
    if not data:
        raise MessageDecodeError(DecodeErrorKind.EMPTY_PAYLOAD, "Empty response body")
    return data


def _json_type(value: Any) -> str:
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, list):
        return "array"
    if isinstance(value, dict):
        return "object"
    return "null"


def _decode_configuration(
    body: str | bytes | None,
    model: type[ConfigurationT],
    subject: str,
) -> ConfigurationT:
    data = _require_map(body, subject)
    properties: list[ConfigurationProperty] = []
    for key, attributes in data.items():
        if not key:
            raise MessageDecodeError(
                DecodeErrorKind.EMPTY_PROPERTY_KEY,
                f"{subject} key cannot be empty",
            )
        if not isinstance(attributes, dict):
            raise MessageDecodeError(
                DecodeErrorKind.PROPERTY_NOT_A_MAP,
                f"{subject} properties for key '{key}' should be represented as a Map",
                key=key,
            )
        values = read_fields(attributes, PROPERTY_FIELDS, subject, key=key)
        properties.append(ConfigurationProperty(key=key, **values))
    return model(properties=properties)


def decode_repository_configuration(body: str | bytes | None) -> RepositoryConfiguration:
    """Decode the repository configuration a plugin declares.

    Example:
        >>> config = decode_repository_configuration('{"url": {"required": true}}')
        >>> config.get("url").required
        True
    """
    return _decode_configuration(body, RepositoryConfiguration, "Repository configuration")


def decode_package_configuration(body: str | bytes | None) -> PackageConfiguration:
    """Decode the package configuration a plugin declares."""
    return _decode_configuration(body, PackageConfiguration, "Package configuration")


def decode_validation_result(body: str | bytes | None) -> ValidationResult:
    """Decode a list of validation errors.

    An absent, blank or ``null`` body means the configuration is valid.
    Errors without a ``key`` are global errors.
    """
    data = parse_body(body)
    result = ValidationResult()
    if data is None:
        return result
    if not isinstance(data, list):
        raise MessageDecodeError(
            DecodeErrorKind.UNEXPECTED_SHAPE,
            "Validation errors should be returned as list of errors, "
            f"with each error represented as a map, got {_json_type(data)}",
        )
    for item in data:
        if not isinstance(item, dict):
            raise MessageDecodeError(
                DecodeErrorKind.VALIDATION_ERROR_NOT_A_MAP,
                f"Each validation error should be represented as a map, got {_json_type(item)}",
            )
        result.add_error(ValidationError(**read_fields(item, VALIDATION_ERROR_FIELDS, "Validation error")))
    return result


def decode_check_connection_result(body: str | bytes | None) -> CheckConnectionResult:
    """Decode a connection-check result.

    ``status`` equal to "success" (any case) is a success; any other
    non-empty status is a failure. ``messages`` belong to that outcome.
    """
    data = _require_map(body, "Check connection result")
    values = read_fields(data, CHECK_CONNECTION_FIELDS, "Check connection")
    messages: list[Any] = values.get("messages", [])
    for index, message in enumerate(messages):
        if not isinstance(message, str):
            raise MessageDecodeError(
                DecodeErrorKind.MESSAGE_TYPE_MISMATCH,
                f"Check connection 'messages' entry at index {index} should be of type string",
                field="messages",
            )
    return CheckConnectionResult(
        succeeded=values["status"].lower() == SUCCESS_STATUS,
        messages=list(messages),
    )


def _to_package_revision(data: dict[str, Any]) -> PackageRevision:
    return PackageRevision(**read_fields(data, PACKAGE_REVISION_FIELDS, "Package revision"))


def decode_package_revision(body: str | bytes | None) -> PackageRevision:
    """Decode the latest revision of a package."""
    return _to_package_revision(_require_map(body, "Package revision"))


def decode_latest_revision_since(body: str | bytes | None) -> PackageRevision | None:
    """Decode the revision newer than a previously seen one.

    Returns:
        The new revision, or None when the plugin reports no new revision
        (absent, blank, ``null`` or ``{}`` body)
    """
    data = parse_body(body)
    if data is None:
        return None
    if not isinstance(data, dict):
        raise MessageDecodeError(
            DecodeErrorKind.UNEXPECTED_SHAPE,
            f"Package revision should be returned as a map, got {_json_type(data)}",
        )
    if not data:
        return None
    return _to_package_revision(data)
