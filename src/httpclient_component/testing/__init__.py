"""Testing utilities for code that builds transports with this package.

Example:
    ```python
    from httpclient_component import SmartComponent, SmartConfig
    from httpclient_component.testing import EXAMPLE_OPENAPI, RequestRecorder

    recorder = RequestRecorder()
    component = SmartComponent(transport_factory=recorder.transport_factory)
    transport = component.new(SmartConfig(openapi=EXAMPLE_OPENAPI))

    async with httpx.AsyncClient(transport=transport) as client:
        await client.get("http://placeholder/healthcheck")

    assert recorder.requests[0].url == "http://app:8081/healthcheck"
    ```
"""

from collections.abc import Callable

import httpx

EXAMPLE_OPENAPI = """openapi: 3.0.0
x-transportd:
  backends:
    - app
  app:
    host: "http://app:8081"
    pool:
      ttl: "24h"
      count: 1
info:
  version: 1.0.0
  title: "Example"
  description: "An example"
  license:
    name: Apache 2.0
    url: 'https://www.apache.org/licenses/LICENSE-2.0.html'
paths:
  /healthcheck:
    get:
      description: "Liveness check."
      responses:
        "200":
          description: "Success."
      x-transportd:
        backend: app
"""


class RequestRecorder:
    """Collects every request that reaches the mock network layer.

    ``transport_factory`` matches the factory signature the components accept,
    so the recorder can stand in for real network transports.

    Args:
        handler: Builds the response for each request (default: empty 200)
    """

    def __init__(self, handler: Callable[[httpx.Request], httpx.Response] | None = None) -> None:
        self.requests: list[httpx.Request] = []
        self.transports: list[httpx.MockTransport] = []
        self._handler = handler or (lambda request: httpx.Response(200, text="OK"))

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self._handler(request)

    def transport_factory(self, limits: httpx.Limits | None = None) -> httpx.MockTransport:
        transport = httpx.MockTransport(self._handle)
        self.transports.append(transport)
        return transport


__all__ = ["EXAMPLE_OPENAPI", "RequestRecorder"]
