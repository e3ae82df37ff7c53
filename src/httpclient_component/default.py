"""The DEFAULT transport: a pooled httpx transport with a default Content-Type."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import timedelta

import httpx

from httpclient_component.errors import ConfigurationError
from httpclient_component.transport.content_type import DEFAULT_CONTENT_TYPE, DefaultContentTypeTransport

logger = logging.getLogger(__name__)

# Builds the real network transport for a set of pool limits.
LimitsTransportFactory = Callable[[httpx.Limits], httpx.AsyncBaseTransport]


def http_transport_factory(limits: httpx.Limits) -> httpx.AsyncBaseTransport:
    return httpx.AsyncHTTPTransport(limits=limits)


@dataclass
class DefaultConfig:
    """Settings for the DEFAULT transport."""

    content_type: str = field(
        default=DEFAULT_CONTENT_TYPE,
        metadata={"description": "Content-Type set on requests that are sent without one."},
    )
    max_connections: int = field(
        default=100,
        metadata={"description": "Maximum number of concurrent connections."},
    )
    max_keepalive_connections: int = field(
        default=100,
        metadata={"description": "Maximum number of idle connections kept open."},
    )
    keepalive_expiry: timedelta = field(
        default=timedelta(seconds=90),
        metadata={"description": "How long an idle connection is kept before it is closed."},
    )

    def limits(self) -> httpx.Limits:
        """Convert to httpx Limits."""
        return httpx.Limits(
            max_connections=self.max_connections,
            max_keepalive_connections=self.max_keepalive_connections,
            keepalive_expiry=self.keepalive_expiry.total_seconds(),
        )

    def validate(self) -> None:
        if not self.content_type:
            raise ConfigurationError("default.content_type must not be empty")
        if self.max_connections < 1:
            raise ConfigurationError(f"default.max_connections must be at least 1, got {self.max_connections}")
        if self.max_keepalive_connections < 0:
            raise ConfigurationError(
                f"default.max_keepalive_connections must not be negative, got {self.max_keepalive_connections}"
            )
        if self.keepalive_expiry < timedelta(0):
            raise ConfigurationError("default.keepalive_expiry must not be negative")


class DefaultComponent:
    """Builds the DEFAULT transport.

    Example:
        ```python
        component = DefaultComponent()
        transport = component.new(component.settings())

        async with httpx.AsyncClient(transport=transport) as client:
            await client.post("https://api.example.com/items", content=b"{}")
        ```
    """

    def __init__(self, transport_factory: LimitsTransportFactory = http_transport_factory) -> None:
        self._transport_factory = transport_factory

    def settings(self) -> DefaultConfig:
        return DefaultConfig()

    def new(self, config: DefaultConfig) -> DefaultContentTypeTransport:
        config.validate()
        logger.debug(
            f"Building default transport (content_type={config.content_type}, "
            f"max_connections={config.max_connections})"
        )
        return DefaultContentTypeTransport(
            wrapped_transport=self._transport_factory(config.limits()),
            content_type=config.content_type,
        )
