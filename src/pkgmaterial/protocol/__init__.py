"""Protocol layer for package material plugins.

This package translates between host-side configuration objects and the JSON
messages exchanged with plugins, with no knowledge of how the plugin is
invoked. It is responsible for:
- Request envelope encoding
- Response parsing and per-field validation
- Fixed-format timestamp handling
- Uniform decode failure reporting
"""

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
from pkgmaterial.protocol.exceptions import (
    DecodeErrorKind,
    MessageDecodeError,
    ProtocolError,
)
from pkgmaterial.protocol.handler import JsonMessageHandler, JsonMessageHandlerV1

__all__ = [
    # Models
    "CheckConnectionResult",
    "ConfigurationProperty",
    "ConfigurationSet",
    "PackageConfiguration",
    "PackageRevision",
    "RepositoryConfiguration",
    "ValidationError",
    "ValidationResult",
    # Exceptions
    "DecodeErrorKind",
    "MessageDecodeError",
    "ProtocolError",
    # Handlers
    "JsonMessageHandler",
    "JsonMessageHandlerV1",
]
