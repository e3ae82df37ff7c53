"""Structured exceptions for transport construction and routing."""


class HTTPClientComponentError(Exception):
    """Base exception for every error raised by this package."""

    pass


class ConfigurationError(HTTPClientComponentError):
    """Raised while building a transport from configuration.

    Configuration errors are fatal: they surface from ``new()`` and are
    never retried.
    """

    pass


class SettingsError(ConfigurationError):
    """A setting could not be converted to the type its config field declares."""

    def __init__(self, message: str, path: tuple[str, ...] | None = None):
        super().__init__(message)
        self.path = path


class UnknownTransportTypeError(ConfigurationError):
    """The ``type`` discriminator names no known transport."""

    def __init__(self, message: str, transport_type: str | None = None):
        super().__init__(message)
        self.transport_type = transport_type


class OpenAPIDocumentError(ConfigurationError):
    """The smart transport's OpenAPI document is missing or malformed."""

    pass


class UnknownBackendError(OpenAPIDocumentError):
    """A path binding references a backend that was never declared."""

    def __init__(self, message: str, backend: str, path: str | None = None):
        super().__init__(message)
        self.backend = backend
        self.path = path


class RouteNotFoundError(HTTPClientComponentError):
    """Raised at send time when no backend is bound to the request."""

    def __init__(self, message: str, method: str, path: str):
        super().__init__(message)
        self.method = method
        self.path = path
