"""Fixed-format timestamp codec.

Revisions travel with a single timestamp layout, ``yyyy-MM-dd'T'HH:mm:ss.SSS'Z'``,
always expressed in UTC with millisecond precision.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime

TIMESTAMP_PATTERN = "yyyy-MM-dd'T'HH:mm:ss.SSS'Z'"

_TIMESTAMP_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}T[0-9]{2}:[0-9]{2}:[0-9]{2}\.[0-9]{3}Z")
_STRPTIME_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"


def to_utc(value: datetime) -> datetime:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def format_timestamp(value: datetime) -> str:
    """Format a datetime using the wire timestamp layout.

    Example:
        >>> format_timestamp(datetime(2014, 1, 1, 10, 0, tzinfo=UTC))
        '2014-01-01T10:00:00.000Z'
    """
    moment = to_utc(value)
    return f"{moment:%Y-%m-%dT%H:%M:%S}.{moment.microsecond // 1000:03d}Z"


def parse_timestamp(text: str) -> datetime:
    """Parse a wire timestamp into an aware UTC datetime.

    Raises:
        ValueError: If ``text`` does not match the fixed layout exactly
    """
    if not _TIMESTAMP_RE.fullmatch(text):
        raise ValueError(f"timestamp '{text}' does not match {TIMESTAMP_PATTERN}")
    # strptime also rejects out-of-range components such as month 13
    return datetime.strptime(text, _STRPTIME_FORMAT).replace(tzinfo=UTC)
