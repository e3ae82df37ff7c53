"""Error types raised while building and using transports."""

from httpclient_component.errors.exceptions import (
    ConfigurationError,
    HTTPClientComponentError,
    OpenAPIDocumentError,
    RouteNotFoundError,
    SettingsError,
    UnknownBackendError,
    UnknownTransportTypeError,
)

__all__ = [
    "ConfigurationError",
    "HTTPClientComponentError",
    "OpenAPIDocumentError",
    "RouteNotFoundError",
    "SettingsError",
    "UnknownBackendError",
    "UnknownTransportTypeError",
]
