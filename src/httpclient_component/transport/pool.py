"""Backend connection pools built from rotated, periodically recycled transports.

A backend pool is ``count`` independent transports used round-robin. Each of
them is rebuilt once it is older than ``ttl`` so that long-lived clients pick
up DNS changes and spread load across upstream replicas.

- RecyclingTransport: swaps in a fresh transport after ``ttl``
- RotatingTransport: hands requests to several transports in turn
- create_pool: combines both for one backend

```python
from datetime import timedelta

import httpx

from httpclient_component.transport.pool import create_pool

pool = create_pool(
    transport_factory=httpx.AsyncHTTPTransport,
    count=2,
    ttl=timedelta(hours=24),
)

async with httpx.AsyncClient(transport=pool) as client:
    response = await client.get("http://app:8081/healthcheck")
```
"""

import logging
import time
from collections.abc import AsyncIterator, Awaitable, Callable, Sequence
from dataclasses import dataclass
from datetime import timedelta

import httpx

from httpclient_component.settings.duration import format_duration

logger = logging.getLogger(__name__)

TransportFactory = Callable[[], httpx.AsyncBaseTransport]


@dataclass
class _Generation:
    """One transport built by a RecyclingTransport and its in-flight count."""

    transport: httpx.AsyncBaseTransport
    created: float
    active: int = 0
    retired: bool = False


class _ReleasingStream(httpx.AsyncByteStream):
    """Response body wrapper that reports when the body has been closed."""

    def __init__(self, stream: httpx.AsyncByteStream, on_close: Callable[[], Awaitable[None]]):
        self._stream = stream
        self._on_close = on_close
        self._released = False

    async def __aiter__(self) -> AsyncIterator[bytes]:
        async for chunk in self._stream:
            yield chunk

    async def aclose(self) -> None:
        try:
            await self._stream.aclose()
        finally:
            if not self._released:
                self._released = True
                await self._on_close()


class RecyclingTransport(httpx.AsyncBaseTransport):
    """Transport that is rebuilt from ``transport_factory`` every ``ttl``.

    The swap happens lazily on the first request after expiry. A retired
    transport keeps serving the requests already sent through it and is
    closed once the last of their response bodies is closed.

    Args:
        transport_factory: Zero-argument callable building the real transport
        ttl: Lifetime of each transport; None never recycles
        clock: Monotonic clock in seconds (default: time.monotonic)
    """

    def __init__(
        self,
        *,
        transport_factory: TransportFactory,
        ttl: timedelta | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._transport_factory = transport_factory
        self.ttl = ttl
        self._clock = clock
        self._current = self._new_generation()
        self._retired: list[_Generation] = []
        self._closed = False

    @property
    def current_transport(self) -> httpx.AsyncBaseTransport:
        return self._current.transport

    def _new_generation(self) -> _Generation:
        return _Generation(transport=self._transport_factory(), created=self._clock())

    def _expired(self, generation: _Generation) -> bool:
        if self.ttl is None:
            return False
        return self._clock() - generation.created >= self.ttl.total_seconds()

    def _acquire(self) -> _Generation:
        # No awaits here: the check and the swap must not interleave.
        if self._expired(self._current):
            old = self._current
            old.retired = True
            self._retired.append(old)
            self._current = self._new_generation()
            logger.debug(f"Recycled transport after {format_duration(self.ttl)}")
        generation = self._current
        generation.active += 1
        return generation

    async def _release(self, generation: _Generation) -> None:
        generation.active -= 1
        if generation.retired:
            await self._close_idle_retired()

    async def _close_idle_retired(self) -> None:
        idle = [g for g in self._retired if g.active == 0]
        if not idle:
            return
        self._retired = [g for g in self._retired if g.active > 0]
        for generation in idle:
            await generation.transport.aclose()

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        if self._closed:
            raise RuntimeError("Transport is closed")

        generation = self._acquire()
        await self._close_idle_retired()

        try:
            response = await generation.transport.handle_async_request(request)
        except BaseException:
            await self._release(generation)
            raise

        if not isinstance(response.stream, httpx.AsyncByteStream):
            await self._release(generation)
            return response

        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=_ReleasingStream(response.stream, lambda: self._release(generation)),
            extensions=response.extensions,
        )

    async def aclose(self) -> None:
        if self._closed:
            return
        self._closed = True
        generations = [self._current, *self._retired]
        self._retired = []
        for generation in generations:
            await generation.transport.aclose()


class RotatingTransport(httpx.AsyncBaseTransport):
    """Send each request through the next transport in a fixed ring."""

    def __init__(self, transports: Sequence[httpx.AsyncBaseTransport]) -> None:
        if not transports:
            raise ValueError("RotatingTransport requires at least one transport")
        self._transports = list(transports)
        self._next = 0

    @property
    def transports(self) -> list[httpx.AsyncBaseTransport]:
        return list(self._transports)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        transport = self._transports[self._next]
        self._next = (self._next + 1) % len(self._transports)
        return await transport.handle_async_request(request)

    async def aclose(self) -> None:
        for transport in self._transports:
            await transport.aclose()


def create_pool(
    *,
    transport_factory: TransportFactory,
    count: int = 1,
    ttl: timedelta | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> RotatingTransport:
    """Build a rotating pool of ``count`` recycling transports.

    Args:
        transport_factory: Builds each underlying transport
        count: Number of transports in the ring (must be at least 1)
        ttl: Recycle interval for every transport in the ring
        clock: Monotonic clock in seconds

    Returns:
        RotatingTransport over RecyclingTransport instances
    """
    if count < 1:
        raise ValueError(f"pool count must be at least 1, got {count}")
    return RotatingTransport(
        [RecyclingTransport(transport_factory=transport_factory, ttl=ttl, clock=clock) for _ in range(count)]
    )
