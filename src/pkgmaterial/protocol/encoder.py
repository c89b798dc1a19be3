"""Request encoding for package material plugin calls.

Requests are JSON objects keyed by fixed labels. Configuration sets are sent
as ``{key: {"value": ...}}``; property metadata never leaves the host.
"""

from __future__ import annotations

import json
from typing import Any

from pkgmaterial.protocol.models import (
    ConfigurationSet,
    PackageConfiguration,
    PackageRevision,
    RepositoryConfiguration,
)
from pkgmaterial.protocol.timestamps import format_timestamp

REPOSITORY_CONFIGURATION = "repository-configuration"
PACKAGE_CONFIGURATION = "package-configuration"
PREVIOUS_REVISION = "previous-revision"

_COMPACT_SEPARATORS = (",", ":")
_DEFAULT_SEPARATORS = (", ", ": ")


def configuration_to_map(configuration: ConfigurationSet) -> dict[str, dict[str, str | None]]:
    """Encode a configuration set, preserving property order."""
    return {prop.key: {"value": prop.value} for prop in configuration.properties}


def revision_to_map(revision: PackageRevision) -> dict[str, Any]:
    """Encode a revision for use as ``previous-revision``.

    Only revision, timestamp and data are sent; user, comment and trackback
    URL are host-side information the plugin does not need.
    """
    return {
        "revision": revision.revision,
        "timestamp": format_timestamp(revision.timestamp),
        "data": dict(revision.data),
    }


def build_request(
    repository: RepositoryConfiguration,
    package: PackageConfiguration | None = None,
    previous_revision: PackageRevision | None = None,
) -> dict[str, Any]:
    """Assemble the request envelope.

    Args:
        repository: Repository configuration, always sent
        package: Package configuration (omitted when None)
        previous_revision: Last known revision (omitted when None)

    Returns:
        Request envelope with keys in wire order
    """
    message: dict[str, Any] = {REPOSITORY_CONFIGURATION: configuration_to_map(repository)}
    if package is not None:
        message[PACKAGE_CONFIGURATION] = configuration_to_map(package)
    if previous_revision is not None:
        message[PREVIOUS_REVISION] = revision_to_map(previous_revision)
    return message


def to_json(message: dict[str, Any], compact: bool = False, ensure_ascii: bool = False) -> str:
    """Serialize a request envelope to JSON text.

    Raises:
        TypeError: A revision ``data`` value has no JSON representation
        ValueError: A revision ``data`` value is NaN or infinite
    """
    return json.dumps(
        message,
        separators=_COMPACT_SEPARATORS if compact else _DEFAULT_SEPARATORS,
        ensure_ascii=ensure_ascii,
        allow_nan=False,
    )
