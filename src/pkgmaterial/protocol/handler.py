"""JSON message handlers for package material plugins.

A handler builds the request text for each plugin call and parses the
plugin's response text back into typed results. The caller that talks to the
plugin picks the handler and owns the transport; handlers only translate.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

from pkgmaterial.config import ProtocolConfig
from pkgmaterial.protocol import decoder, encoder
from pkgmaterial.protocol.exceptions import MessageDecodeError
from pkgmaterial.protocol.models import (
    CheckConnectionResult,
    PackageConfiguration,
    PackageRevision,
    RepositoryConfiguration,
    ValidationResult,
)

logger = structlog.get_logger()

ResultT = TypeVar("ResultT")


class JsonMessageHandler(ABC):
    """Request/response translation for one protocol version."""

    version: str

    @abstractmethod
    def response_message_for_repository_configuration(self, response_body: str) -> RepositoryConfiguration: ...

    @abstractmethod
    def request_message_for_is_repository_configuration_valid(
        self, repository_configuration: RepositoryConfiguration
    ) -> str: ...

    @abstractmethod
    def response_message_for_is_repository_configuration_valid(self, response_body: str) -> ValidationResult: ...

    @abstractmethod
    def request_message_for_check_connection_to_repository(
        self, repository_configuration: RepositoryConfiguration
    ) -> str: ...

    @abstractmethod
    def response_message_for_check_connection_to_repository(self, response_body: str) -> CheckConnectionResult: ...

    @abstractmethod
    def response_message_for_package_configuration(self, response_body: str) -> PackageConfiguration: ...

    @abstractmethod
    def request_message_for_is_package_configuration_valid(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
    ) -> str: ...

    @abstractmethod
    def response_message_for_is_package_configuration_valid(self, response_body: str) -> ValidationResult: ...

    @abstractmethod
    def request_message_for_check_connection_to_package(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
    ) -> str: ...

    @abstractmethod
    def response_message_for_check_connection_to_package(self, response_body: str) -> CheckConnectionResult: ...

    @abstractmethod
    def request_message_for_latest_revision(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
    ) -> str: ...

    @abstractmethod
    def response_message_for_latest_revision(self, response_body: str) -> PackageRevision: ...

    @abstractmethod
    def request_message_for_latest_revision_since(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
        previous_revision: PackageRevision,
    ) -> str: ...

    @abstractmethod
    def response_message_for_latest_revision_since(self, response_body: str) -> PackageRevision | None: ...


class JsonMessageHandlerV1(JsonMessageHandler):
    """Version 1.0 of the package material JSON protocol.

    The handler keeps no per-call state and can be shared between threads.

    Args:
        config: Protocol configuration (defaults to built-in settings)

    Example:
        >>> handler = JsonMessageHandlerV1()
        >>> repo = RepositoryConfiguration.from_values({"url": "http://repo"})
        >>> handler.request_message_for_check_connection_to_repository(repo)
        '{"repository-configuration": {"url": {"value": "http://repo"}}}'
    """

    version = "1.0"

    def __init__(self, config: ProtocolConfig | None = None) -> None:
        self.config = config or ProtocolConfig()

    def _request(self, operation: str, message: dict[str, Any]) -> str:
        logger.debug(
            "Built plugin request",
            operation=operation,
            protocol_version=self.version,
            sections=list(message),
        )
        return encoder.to_json(
            message,
            compact=self.config.encoding.compact,
            ensure_ascii=self.config.encoding.ensure_ascii,
        )

    def _response(
        self,
        operation: str,
        decode: Callable[[str], ResultT],
        response_body: str,
    ) -> ResultT:
        try:
            return decode(response_body)
        except MessageDecodeError as e:
            context: dict[str, Any] = {
                "operation": operation,
                "protocol_version": self.version,
                "kind": e.kind.value,
                "field": e.field,
                "key": e.key,
            }
            if self.config.logging.log_payloads and response_body is not None:
                context["payload"] = str(response_body)[: self.config.logging.payload_preview_chars]
            logger.warning("Failed to decode plugin response", error=e.detail, **context)
            raise

    def response_message_for_repository_configuration(self, response_body: str) -> RepositoryConfiguration:
        return self._response(
            "repository_configuration", decoder.decode_repository_configuration, response_body
        )

    def request_message_for_is_repository_configuration_valid(
        self, repository_configuration: RepositoryConfiguration
    ) -> str:
        return self._request(
            "is_repository_configuration_valid",
            encoder.build_request(repository_configuration),
        )

    def response_message_for_is_repository_configuration_valid(self, response_body: str) -> ValidationResult:
        return self._response(
            "is_repository_configuration_valid", decoder.decode_validation_result, response_body
        )

    def request_message_for_check_connection_to_repository(
        self, repository_configuration: RepositoryConfiguration
    ) -> str:
        return self._request(
            "check_connection_to_repository",
            encoder.build_request(repository_configuration),
        )

    def response_message_for_check_connection_to_repository(self, response_body: str) -> CheckConnectionResult:
        return self._response(
            "check_connection_to_repository", decoder.decode_check_connection_result, response_body
        )

    def response_message_for_package_configuration(self, response_body: str) -> PackageConfiguration:
        return self._response(
            "package_configuration", decoder.decode_package_configuration, response_body
        )

    def request_message_for_is_package_configuration_valid(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
    ) -> str:
        return self._request(
            "is_package_configuration_valid",
            encoder.build_request(repository_configuration, package_configuration),
        )

    def response_message_for_is_package_configuration_valid(self, response_body: str) -> ValidationResult:
        return self._response(
            "is_package_configuration_valid", decoder.decode_validation_result, response_body
        )

    def request_message_for_check_connection_to_package(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
    ) -> str:
        return self._request(
            "check_connection_to_package",
            encoder.build_request(repository_configuration, package_configuration),
        )

    def response_message_for_check_connection_to_package(self, response_body: str) -> CheckConnectionResult:
        return self._response(
            "check_connection_to_package", decoder.decode_check_connection_result, response_body
        )

    def request_message_for_latest_revision(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
    ) -> str:
        return self._request(
            "latest_revision",
            encoder.build_request(repository_configuration, package_configuration),
        )

    def response_message_for_latest_revision(self, response_body: str) -> PackageRevision:
        return self._response("latest_revision", decoder.decode_package_revision, response_body)

    def request_message_for_latest_revision_since(
        self,
        package_configuration: PackageConfiguration,
        repository_configuration: RepositoryConfiguration,
        previous_revision: PackageRevision,
    ) -> str:
        return self._request(
            "latest_revision_since",
            encoder.build_request(repository_configuration, package_configuration, previous_revision),
        )

    def response_message_for_latest_revision_since(self, response_body: str) -> PackageRevision | None:
        return self._response(
            "latest_revision_since", decoder.decode_latest_revision_since, response_body
        )
