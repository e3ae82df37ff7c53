"""The SMART transport: per-backend pools and routing from an OpenAPI document."""

import functools
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass, field

import httpx

from httpclient_component.default import DefaultConfig, LimitsTransportFactory, http_transport_factory
from httpclient_component.openapi import BackendSpec, parse_openapi
from httpclient_component.settings.duration import format_duration
from httpclient_component.transport.pool import create_pool
from httpclient_component.transport.routing import Backend, RoutingTransport

logger = logging.getLogger(__name__)


@dataclass
class SmartConfig:
    """Settings for the SMART transport."""

    openapi: str = field(
        default="",
        metadata={"description": "OpenAPI document (YAML or JSON) with x-transportd backend annotations."},
    )


class SmartComponent:
    """Builds the SMART transport.

    Args:
        transport_factory: Builds each pooled network transport from limits
        limits: Connection limits for every pooled transport
            (default: the DEFAULT transport's limits)
        clock: Monotonic clock used for pool TTLs
    """

    def __init__(
        self,
        transport_factory: LimitsTransportFactory = http_transport_factory,
        limits: httpx.Limits | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport_factory = transport_factory
        self._limits = limits or DefaultConfig().limits()
        self._clock = clock

    def settings(self) -> SmartConfig:
        return SmartConfig()

    def new(self, config: SmartConfig) -> RoutingTransport:
        """Build a routing transport from ``config.openapi``.

        Raises:
            OpenAPIDocumentError: If the document is empty, unparseable, or
                its x-transportd declarations are invalid.
            UnknownBackendError: If a path is bound to an undeclared backend.
        """
        transportd = parse_openapi(config.openapi)
        backends = {name: self._build_backend(backend) for name, backend in transportd.backends.items()}
        return RoutingTransport(routes=transportd.routes, backends=backends)

    def _build_backend(self, backend: BackendSpec) -> Backend:
        ttl = format_duration(backend.pool.ttl) if backend.pool.ttl is not None else "never"
        logger.debug(f"Building backend '{backend.name}' -> {backend.host} (pool count={backend.pool.count}, ttl={ttl})")

        pool = create_pool(
            transport_factory=functools.partial(self._transport_factory, self._limits),
            count=backend.pool.count,
            ttl=backend.pool.ttl,
            clock=self._clock,
        )
        return Backend(name=backend.name, url=httpx.URL(backend.host), transport=pool)
