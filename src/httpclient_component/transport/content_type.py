"""Transport that fills in a default Content-Type header.

```python
from httpclient_component.transport.content_type import DefaultContentTypeTransport
import httpx

transport = DefaultContentTypeTransport(
    wrapped_transport=httpx.AsyncHTTPTransport(),
    content_type="application/json",
)

async with httpx.AsyncClient(transport=transport) as client:
    # Sent with Content-Type: application/json
    await client.post("https://api.example.com/items", content=b'{"hello": "world"}')

    # Sent unchanged
    await client.post(
        "https://api.example.com/items",
        content=b'{"a": 1}\\n{"a": 2}\\n',
        headers={"Content-Type": "application/jsonlines"},
    )
```
"""

import logging

import httpx

logger = logging.getLogger(__name__)

HEADER_CONTENT_TYPE = "Content-Type"
DEFAULT_CONTENT_TYPE = "application/json"


class DefaultContentTypeTransport(httpx.AsyncBaseTransport):
    """Set ``Content-Type`` on requests that are sent without one.

    A header that is present but empty counts as unset. Any non-empty value,
    including a different JSON flavour such as ``application/jsonlines``,
    is left alone.

    Args:
        wrapped_transport: The underlying transport to wrap
        content_type: Value injected when the header is missing
            (default: ``application/json``)
    """

    def __init__(
        self,
        *,
        wrapped_transport: httpx.AsyncBaseTransport,
        content_type: str = DEFAULT_CONTENT_TYPE,
    ) -> None:
        self._wrapped_transport = wrapped_transport
        self.content_type = content_type

    @property
    def wrapped_transport(self) -> httpx.AsyncBaseTransport:
        return self._wrapped_transport

    async def __aenter__(self):
        """Enter async context, delegating to wrapped transport."""
        await self._wrapped_transport.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Exit async context, delegating to wrapped transport."""
        return await self._wrapped_transport.__aexit__(exc_type, exc_val, exc_tb)

    async def aclose(self) -> None:
        await self._wrapped_transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if not request.headers.get(HEADER_CONTENT_TYPE):
            request.headers[HEADER_CONTENT_TYPE] = self.content_type
            logger.debug(f"Set default {HEADER_CONTENT_TYPE} on {request.method} {request.url}")
        return await self._wrapped_transport.handle_async_request(request)
