"""Package material protocol models.

Pydantic models for the objects exchanged with package material plugins:
configuration properties and the sets that hold them, validation results,
connection-check results and package revisions.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from pkgmaterial.protocol.timestamps import to_utc


class ConfigurationProperty(BaseModel):
    """A single configuration property.

    Only ``key`` and ``value`` cross the wire on requests; the remaining
    attributes are metadata a plugin declares in configuration responses.

    Example:
        >>> prop = ConfigurationProperty(key="url", value="http://repo")
        >>> prop.secure is None
        True
    """

    key: str = Field(..., min_length=1, description="Property key")
    value: str | None = Field(default=None, description="Resolved value")
    default_value: str | None = Field(default=None, description="Default value")
    part_of_identity: bool | None = Field(default=None, description="Part of material identity")
    secure: bool | None = Field(default=None, description="Value is secret")
    required: bool | None = Field(default=None, description="Value is mandatory")
    display_name: str | None = Field(default=None, description="Label shown to users")
    display_order: int | None = Field(default=None, description="Position shown to users")


class ConfigurationSet(BaseModel):
    """Ordered collection of configuration properties with unique keys.

    Two sets are equal when they hold the same key/value pairs in the same
    order; property metadata does not take part in the comparison.
    """

    properties: list[ConfigurationProperty] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_unique_keys(self) -> ConfigurationSet:
        """Reject duplicate property keys."""
        seen: set[str] = set()
        for prop in self.properties:
            if prop.key in seen:
                raise ValueError(f"Duplicate configuration key '{prop.key}'")
            seen.add(prop.key)
        return self

    @classmethod
    def of(cls, *properties: ConfigurationProperty) -> ConfigurationSet:
        return cls(properties=list(properties))

    @classmethod
    def from_values(cls, values: dict[str, str | None]) -> ConfigurationSet:
        """Build a set from a plain key to value mapping, keeping its order."""
        return cls(
            properties=[ConfigurationProperty(key=key, value=value) for key, value in values.items()]
        )

    def add(self, prop: ConfigurationProperty) -> None:
        if prop.key in self:
            raise ValueError(f"Duplicate configuration key '{prop.key}'")
        self.properties.append(prop)

    def get(self, key: str) -> ConfigurationProperty | None:
        for prop in self.properties:
            if prop.key == key:
                return prop
        return None

    def keys(self) -> list[str]:
        return [prop.key for prop in self.properties]

    def __len__(self) -> int:
        return len(self.properties)

    def __contains__(self, key: object) -> bool:
        return any(prop.key == key for prop in self.properties)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ConfigurationSet):
            return NotImplemented
        return [(p.key, p.value) for p in self.properties] == [
            (p.key, p.value) for p in other.properties
        ]


class RepositoryConfiguration(ConfigurationSet):
    """Configuration describing a package repository."""


class PackageConfiguration(ConfigurationSet):
    """Configuration describing a package within a repository."""


class ValidationError(BaseModel):
    """A validation failure reported by a plugin.

    A missing ``key`` marks a global error that is not tied to one field.
    """

    key: str | None = Field(default=None, description="Offending property key")
    message: str = Field(..., description="Error message")

    @property
    def is_global(self) -> bool:
        return not self.key


class ValidationResult(BaseModel):
    """Outcome of a configuration validation; no errors means valid."""

    errors: list[ValidationError] = Field(default_factory=list)

    def add_error(self, error: ValidationError) -> None:
        self.errors.append(error)

    def is_successful(self) -> bool:
        return not self.errors

    def messages(self) -> list[str]:
        return [error.message for error in self.errors]


class CheckConnectionResult(BaseModel):
    """Outcome of a repository or package connection check.

    Attributes:
        succeeded: True when the plugin reported success
        messages: Messages belonging to whichever outcome was reported
    """

    succeeded: bool = Field(..., description="Connection check succeeded")
    messages: list[str] = Field(default_factory=list, description="Outcome messages")

    @property
    def failed(self) -> bool:
        return not self.succeeded

    @classmethod
    def success(cls, *messages: str) -> CheckConnectionResult:
        return cls(succeeded=True, messages=list(messages))

    @classmethod
    def failure(cls, *messages: str) -> CheckConnectionResult:
        return cls(succeeded=False, messages=list(messages))


class PackageRevision(BaseModel):
    """A single revision polled from a package repository.

    ``timestamp`` is always held as an aware UTC datetime. ``data`` is an
    opaque metadata bag passed between host and plugin untouched.

    Example:
        >>> revision = PackageRevision(
        ...     revision="go-agent-14.1.0-123",
        ...     timestamp=datetime(2014, 1, 1, 10, 0),
        ... )
        >>> revision.timestamp.tzinfo
        datetime.timezone.utc
    """

    revision: str = Field(..., description="Revision identifier")
    timestamp: datetime = Field(..., description="Revision time (UTC)")
    user: str | None = Field(default=None, description="Author of the revision")
    revision_comment: str | None = Field(default=None, description="Revision comment")
    trackback_url: str | None = Field(default=None, description="Link back to the revision")
    data: dict[str, Any] = Field(default_factory=dict, description="Opaque revision data")

    model_config = ConfigDict(frozen=False)

    @field_validator("timestamp")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        """Store timestamps in UTC."""
        return to_utc(v)
