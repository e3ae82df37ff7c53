"""HTTP client transports built from declarative settings.

Two transports are available:
- DEFAULT: pooled httpx transport that sends ``Content-Type: application/json``
  when a request has no Content-Type of its own
- SMART: routes each request to a backend connection pool chosen from
  ``x-transportd`` annotations in an OpenAPI document

Example:
    ```python
    import httpx

    from httpclient_component import EnvSource, new

    # HTTPCLIENT_TYPE=SMART
    # HTTPCLIENT_SMART_OPENAPI=<document>
    transport = new(EnvSource())

    async with httpx.AsyncClient(transport=transport) as client:
        response = await client.get("http://placeholder/healthcheck")
    ```
"""

from httpclient_component.component import Config, HTTPComponent, TransportType, load, new
from httpclient_component.default import DefaultComponent, DefaultConfig
from httpclient_component.settings import EnvSource, MapSource, MultiSource
from httpclient_component.smart import SmartComponent, SmartConfig

__version__ = "0.1.0"

__all__ = [
    "Config",
    "DefaultComponent",
    "DefaultConfig",
    "EnvSource",
    "HTTPComponent",
    "MapSource",
    "MultiSource",
    "SmartComponent",
    "SmartConfig",
    "TransportType",
    "__version__",
    "load",
    "new",
]
