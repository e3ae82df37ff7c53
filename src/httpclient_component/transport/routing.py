"""Route requests to backend pools by OpenAPI path template.

Each request path is matched against the path templates bound in the OpenAPI
document (``/users/{id}`` matches ``/users/42``). Literal templates take
precedence over templated ones, as in OpenAPI itself. The matched backend's
host replaces the request's scheme, host and port, and the request is sent
through that backend's pool.
"""

import logging
import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from urllib.parse import unquote

import httpx

from httpclient_component.errors import RouteNotFoundError
from httpclient_component.openapi import RouteBinding

logger = logging.getLogger(__name__)

_PARAMETER = re.compile(r"\{[^/{}]+\}")


@dataclass(frozen=True)
class Backend:
    """A backend's base URL and the transport requests to it go through."""

    name: str
    url: httpx.URL
    transport: httpx.AsyncBaseTransport


@dataclass(frozen=True)
class Route:
    """A compiled route binding.

    Templates and request paths are compared segment by segment. Request
    segments are percent-decoded one at a time, so an encoded ``%2F`` stays
    inside the segment it belongs to.
    """

    template: str
    method: str
    backend: str
    segments: tuple[re.Pattern[str], ...]
    parameters: int

    @classmethod
    def compile(cls, binding: RouteBinding) -> "Route":
        return cls(
            template=binding.path,
            method=binding.method.upper(),
            backend=binding.backend,
            segments=tuple(_compile_segment(segment) for segment in binding.path.split("/")),
            parameters=len(_PARAMETER.findall(binding.path)),
        )

    def matches_path(self, raw_path: str) -> bool:
        """Check a percent-encoded request path (no query string) against the template."""
        parts = raw_path.split("/")
        if len(parts) != len(self.segments):
            return False
        return all(pattern.fullmatch(unquote(part)) for pattern, part in zip(self.segments, parts))


def _compile_segment(segment: str) -> re.Pattern[str]:
    pieces = []
    position = 0
    for match in _PARAMETER.finditer(segment):
        pieces.append(re.escape(segment[position : match.start()]))
        pieces.append(".+")
        position = match.end()
    pieces.append(re.escape(segment[position:]))
    return re.compile("".join(pieces), re.DOTALL)



class RoutingTransport(httpx.AsyncBaseTransport):
    """Dispatch each request to the backend bound to its path and method.

    Args:
        routes: Path/method bindings from the OpenAPI document
        backends: Backends by name; every route must name one of them

    Raises:
        ValueError: If a route names a backend that is not in ``backends``
    """

    def __init__(self, *, routes: Sequence[RouteBinding], backends: Mapping[str, Backend]) -> None:
        for binding in routes:
            if binding.backend not in backends:
                raise ValueError(f"route {binding.method} {binding.path} names unknown backend '{binding.backend}'")

        self._backends = dict(backends)
        # Literal paths first, then fewer parameters, then longer templates.
        self._routes = sorted(
            (Route.compile(binding) for binding in routes),
            key=lambda route: (route.parameters, -len(route.template)),
        )

    @property
    def routes(self) -> list[Route]:
        return list(self._routes)

    @property
    def backends(self) -> dict[str, Backend]:
        return dict(self._backends)

    def resolve(self, method: str, path: str) -> Backend:
        """Return the backend for ``method`` and the percent-encoded ``path``.

        Raises:
            RouteNotFoundError: If no bound operation matches.
        """
        method = method.upper()
        path_matched = False
        for route in self._routes:
            if not route.matches_path(path):
                continue
            path_matched = True
            if route.method == method:
                return self._backends[route.backend]

        if path_matched:
            raise RouteNotFoundError(f"No backend bound to {method} {path} (path exists for other methods)", method, path)
        raise RouteNotFoundError(f"No backend bound to {method} {path}", method, path)

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        backend = self.resolve(request.method, request.url.raw_path.partition(b"?")[0].decode("ascii"))

        base_path = backend.url.raw_path.rstrip(b"/")
        request.url = request.url.copy_with(
            scheme=backend.url.scheme,
            host=backend.url.host,
            port=backend.url.port,
            raw_path=base_path + request.url.raw_path,
        )
        request.headers["Host"] = backend.url.netloc.decode("ascii")

        logger.debug(f"Routing {request.method} {request.url.path} to backend '{backend.name}'")
        return await backend.transport.handle_async_request(request)

    async def aclose(self) -> None:
        for backend in self._backends.values():
            await backend.transport.aclose()
