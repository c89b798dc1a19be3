"""Shared pytest fixtures for protocol tests."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from pkgmaterial.config import ProtocolConfig
from pkgmaterial.protocol.handler import JsonMessageHandlerV1
from pkgmaterial.protocol.models import (
    ConfigurationProperty,
    PackageConfiguration,
    PackageRevision,
    RepositoryConfiguration,
)


@pytest.fixture
def repository_configuration() -> RepositoryConfiguration:
    """Repository configuration with two plain properties."""
    return RepositoryConfiguration.of(
        ConfigurationProperty(key="k1", value="repo-v1"),
        ConfigurationProperty(key="k2", value="repo-v2"),
    )


@pytest.fixture
def package_configuration() -> PackageConfiguration:
    """Package configuration with a single property."""
    return PackageConfiguration.of(ConfigurationProperty(key="k3", value="package-v1"))


@pytest.fixture
def previous_revision() -> PackageRevision:
    """Revision a plugin reported on an earlier poll."""
    return PackageRevision(
        revision="abc.rpm",
        timestamp=datetime(2014, 1, 1, 10, 0, 0, 123000, tzinfo=UTC),
        user="some-user",
        revision_comment="comment",
        trackback_url="http:\\localhost:9999",
        data={"dataKeyOne": "data-value-one", "dataKeyTwo": "data-value-two"},
    )


@pytest.fixture
def handler() -> JsonMessageHandlerV1:
    """Handler with built-in configuration."""
    return JsonMessageHandlerV1(ProtocolConfig())
