"""Unit tests for the version 1.0 JSON message handler.

These tests verify the request envelopes built for each plugin call, the
results parsed from plugin responses, and failure logging.
"""

from __future__ import annotations

import json
from datetime import UTC, datetime
from unittest.mock import patch

import pytest

from pkgmaterial.config import EncodingConfig, LoggingConfig, ProtocolConfig
from pkgmaterial.protocol.exceptions import DecodeErrorKind, MessageDecodeError
from pkgmaterial.protocol.handler import JsonMessageHandler, JsonMessageHandlerV1
from pkgmaterial.protocol.models import (
    CheckConnectionResult,
    PackageConfiguration,
    PackageRevision,
    RepositoryConfiguration,
    ValidationResult,
)


class TestHandlerInit:
    """Tests for JsonMessageHandlerV1 initialization."""

    def test_default_config(self) -> None:
        """Test handler falls back to built-in configuration."""
        handler = JsonMessageHandlerV1()

        assert handler.config == ProtocolConfig()
        assert handler.version == "1.0"
        assert isinstance(handler, JsonMessageHandler)


class TestRequestMessages:
    """Tests for request builders."""

    def test_is_repository_configuration_valid(
        self,
        handler: JsonMessageHandlerV1,
        repository_configuration: RepositoryConfiguration,
    ) -> None:
        """Test validate-repository request carries the repository only."""
        message = handler.request_message_for_is_repository_configuration_valid(
            repository_configuration
        )

        assert message == (
            '{"repository-configuration": '
            '{"k1": {"value": "repo-v1"}, "k2": {"value": "repo-v2"}}}'
        )

    def test_check_connection_to_repository(
        self,
        handler: JsonMessageHandlerV1,
        repository_configuration: RepositoryConfiguration,
    ) -> None:
        """Test check-repository request carries the repository only."""
        message = json.loads(
            handler.request_message_for_check_connection_to_repository(repository_configuration)
        )

        assert list(message) == ["repository-configuration"]

    @pytest.mark.parametrize(
        "method",
        [
            "request_message_for_is_package_configuration_valid",
            "request_message_for_check_connection_to_package",
            "request_message_for_latest_revision",
        ],
    )
    def test_package_requests(
        self,
        handler: JsonMessageHandlerV1,
        repository_configuration: RepositoryConfiguration,
        package_configuration: PackageConfiguration,
        method: str,
    ) -> None:
        """Test package-level requests carry repository and package sections."""
        message = getattr(handler, method)(package_configuration, repository_configuration)

        assert message == (
            '{"repository-configuration": '
            '{"k1": {"value": "repo-v1"}, "k2": {"value": "repo-v2"}}, '
            '"package-configuration": {"k3": {"value": "package-v1"}}}'
        )

    def test_latest_revision_since(
        self,
        handler: JsonMessageHandlerV1,
        repository_configuration: RepositoryConfiguration,
        package_configuration: PackageConfiguration,
        previous_revision: PackageRevision,
    ) -> None:
        """Test revision-since request adds the previous revision."""
        message = json.loads(
            handler.request_message_for_latest_revision_since(
                package_configuration, repository_configuration, previous_revision
            )
        )

        assert message["previous-revision"] == {
            "revision": "abc.rpm",
            "timestamp": "2014-01-01T10:00:00.123Z",
            "data": {"dataKeyOne": "data-value-one", "dataKeyTwo": "data-value-two"},
        }

    def test_compact_encoding(self, repository_configuration: RepositoryConfiguration) -> None:
        """Test compact encoding setting is honoured."""
        handler = JsonMessageHandlerV1(ProtocolConfig(encoding=EncodingConfig(compact=True)))

        message = handler.request_message_for_check_connection_to_repository(
            repository_configuration
        )

        assert message == (
            '{"repository-configuration":{"k1":{"value":"repo-v1"},"k2":{"value":"repo-v2"}}}'
        )

    def test_request_logged_without_values(
        self,
        handler: JsonMessageHandlerV1,
        repository_configuration: RepositoryConfiguration,
    ) -> None:
        """Test request logging names sections but not property values."""
        with patch("pkgmaterial.protocol.handler.logger") as mock_logger:
            handler.request_message_for_check_connection_to_repository(repository_configuration)

        mock_logger.debug.assert_called_once()
        kwargs = mock_logger.debug.call_args.kwargs
        assert kwargs["operation"] == "check_connection_to_repository"
        assert kwargs["sections"] == ["repository-configuration"]
        assert "repo-v1" not in repr(mock_logger.debug.call_args)


class TestResponseMessages:
    """Tests for response parsers."""

    def test_repository_configuration(self, handler: JsonMessageHandlerV1) -> None:
        """Test repository configuration response."""
        config = handler.response_message_for_repository_configuration(
            '{"url": {"required": true, "display-order": "0"}}'
        )

        assert isinstance(config, RepositoryConfiguration)
        assert config.get("url").required is True
        assert config.get("url").display_order == 0

    def test_package_configuration(self, handler: JsonMessageHandlerV1) -> None:
        """Test package configuration response."""
        config = handler.response_message_for_package_configuration(
            '{"name": {"part-of-identity": true}}'
        )

        assert isinstance(config, PackageConfiguration)
        assert config.get("name").part_of_identity is True

    @pytest.mark.parametrize(
        "method",
        [
            "response_message_for_is_repository_configuration_valid",
            "response_message_for_is_package_configuration_valid",
        ],
    )
    def test_validation(self, handler: JsonMessageHandlerV1, method: str) -> None:
        """Test validation responses."""
        result = getattr(handler, method)('[{"key":"url","message":"required"},{"message":"bad"}]')

        assert isinstance(result, ValidationResult)
        assert [(e.key, e.message) for e in result.errors] == [("url", "required"), (None, "bad")]

    @pytest.mark.parametrize(
        "method",
        [
            "response_message_for_check_connection_to_repository",
            "response_message_for_check_connection_to_package",
        ],
    )
    def test_check_connection(self, handler: JsonMessageHandlerV1, method: str) -> None:
        """Test connection-check responses."""
        result = getattr(handler, method)('{"status":"failure","messages":["timeout"]}')

        assert result == CheckConnectionResult.failure("timeout")

    def test_latest_revision(self, handler: JsonMessageHandlerV1) -> None:
        """Test latest revision response."""
        revision = handler.response_message_for_latest_revision(
            '{"revision":"r1","timestamp":"2014-01-01T10:00:00.000Z","user":"bob"}'
        )

        assert revision.revision == "r1"
        assert revision.timestamp == datetime(2014, 1, 1, 10, 0, tzinfo=UTC)
        assert revision.user == "bob"

    def test_latest_revision_since_empty(self, handler: JsonMessageHandlerV1) -> None:
        """Test empty revision-since response means no new revision."""
        assert handler.response_message_for_latest_revision_since("") is None

    def test_latest_revision_empty_fails(self, handler: JsonMessageHandlerV1) -> None:
        """Test empty latest-revision response is a failure."""
        with pytest.raises(MessageDecodeError) as exc_info:
            handler.response_message_for_latest_revision("")

        assert exc_info.value.kind is DecodeErrorKind.EMPTY_PAYLOAD

    def test_previous_revision_round_trip(
        self,
        handler: JsonMessageHandlerV1,
        repository_configuration: RepositoryConfiguration,
        package_configuration: PackageConfiguration,
        previous_revision: PackageRevision,
    ) -> None:
        """Test a revision echoed back by a plugin keeps its moment and data."""
        request = json.loads(
            handler.request_message_for_latest_revision_since(
                package_configuration, repository_configuration, previous_revision
            )
        )

        revision = handler.response_message_for_latest_revision_since(
            json.dumps(request["previous-revision"])
        )

        assert revision.revision == previous_revision.revision
        assert revision.timestamp == previous_revision.timestamp
        assert revision.data == previous_revision.data


class TestFailureLogging:
    """Tests for decode failure logging."""

    def test_failure_logged_and_reraised(self, handler: JsonMessageHandlerV1) -> None:
        """Test decode failures are logged with context and propagated unchanged."""
        with patch("pkgmaterial.protocol.handler.logger") as mock_logger:
            with pytest.raises(MessageDecodeError) as exc_info:
                handler.response_message_for_repository_configuration(
                    '{"k1": {"display-order": "abc"}}'
                )

        mock_logger.warning.assert_called_once()
        kwargs = mock_logger.warning.call_args.kwargs
        assert kwargs["operation"] == "repository_configuration"
        assert kwargs["kind"] == "field_type_mismatch"
        assert kwargs["field"] == "display-order"
        assert kwargs["key"] == "k1"
        assert kwargs["error"] == exc_info.value.detail
        assert "payload" not in kwargs

    def test_payload_logged_when_enabled(self) -> None:
        """Test raw payload preview is logged only when enabled."""
        handler = JsonMessageHandlerV1(
            ProtocolConfig(logging=LoggingConfig(log_payloads=True, payload_preview_chars=5))
        )

        with patch("pkgmaterial.protocol.handler.logger") as mock_logger:
            with pytest.raises(MessageDecodeError):
                handler.response_message_for_check_connection_to_package('{"status": 1}')

        assert mock_logger.warning.call_args.kwargs["payload"] == '{"sta'

    def test_success_not_logged_as_warning(self, handler: JsonMessageHandlerV1) -> None:
        """Test successful decodes do not warn."""
        with patch("pkgmaterial.protocol.handler.logger") as mock_logger:
            handler.response_message_for_check_connection_to_package('{"status":"success"}')

        mock_logger.warning.assert_not_called()

    def test_unparseable_nesting_logged(self, handler: JsonMessageHandlerV1) -> None:
        """Test over-deep nesting goes through the same failure log as other decode errors."""
        with patch("pkgmaterial.protocol.handler.logger") as mock_logger:
            with pytest.raises(MessageDecodeError) as exc_info:
                handler.response_message_for_latest_revision("[" * 100_000)

        assert exc_info.value.kind is DecodeErrorKind.MALFORMED_PAYLOAD
        assert mock_logger.warning.call_args.kwargs["kind"] == "malformed_payload"
