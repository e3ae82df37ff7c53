"""Transport layers the components compose.

Transport layers wrap httpx's AsyncHTTPTransport to add behaviour on the way
out. Each one is an ``httpx.AsyncBaseTransport`` and can be handed straight
to ``httpx.AsyncClient(transport=...)``.

Modules:
    content_type: Default Content-Type header injection
    pool: Rotating and recycling transports for backend pools
    routing: OpenAPI path-template routing to backend pools
"""

from httpclient_component.transport.content_type import (
    DEFAULT_CONTENT_TYPE,
    HEADER_CONTENT_TYPE,
    DefaultContentTypeTransport,
)
from httpclient_component.transport.pool import RecyclingTransport, RotatingTransport, create_pool
from httpclient_component.transport.routing import Backend, Route, RoutingTransport

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "HEADER_CONTENT_TYPE",
    "Backend",
    "DefaultContentTypeTransport",
    "RecyclingTransport",
    "RotatingTransport",
    "Route",
    "RoutingTransport",
    "create_pool",
]
