"""Tests for OpenAPI path-template routing."""

import httpx
import pytest

from httpclient_component.errors import RouteNotFoundError
from httpclient_component.openapi import RouteBinding
from httpclient_component.testing import RequestRecorder
from httpclient_component.transport.routing import Backend, Route, RoutingTransport


def _backend(name: str, url: str, recorder: RequestRecorder) -> Backend:
    return Backend(name=name, url=httpx.URL(url), transport=recorder.transport_factory())


@pytest.fixture
def users() -> RequestRecorder:
    return RequestRecorder(lambda request: httpx.Response(200, text="users"))


@pytest.fixture
def billing() -> RequestRecorder:
    return RequestRecorder(lambda request: httpx.Response(200, text="billing"))


@pytest.fixture
def transport(users, billing) -> RoutingTransport:
    return RoutingTransport(
        routes=[
            RouteBinding(path="/users/{id}", method="GET", backend="users"),
            RouteBinding(path="/users/me", method="GET", backend="billing"),
            RouteBinding(path="/users/{id}/invoices/{invoice}", method="GET", backend="billing"),
            RouteBinding(path="/invoices", method="POST", backend="billing"),
        ],
        backends={
            "users": _backend("users", "http://users:8080", users),
            "billing": _backend("billing", "https://billing.internal/api/", billing),
        },
    )


class TestRouteCompile:
    """Test path template compilation."""

    @pytest.mark.unit
    def test_literal_template(self):
        route = Route.compile(RouteBinding(path="/healthcheck", method="get", backend="app"))

        assert route.method == "GET"
        assert route.parameters == 0
        assert route.matches_path("/healthcheck")
        assert not route.matches_path("/healthcheck/extra")
        assert not route.matches_path("/health")

    @pytest.mark.unit
    def test_parameters_match_one_segment(self):
        route = Route.compile(RouteBinding(path="/users/{id}/posts/{post}", method="GET", backend="app"))

        assert route.parameters == 2
        assert route.matches_path("/users/42/posts/7")
        assert not route.matches_path("/users/42/posts")
        assert not route.matches_path("/users/42/extra/posts/7")
        assert not route.matches_path("/users//posts/7")

    @pytest.mark.unit
    def test_regex_characters_are_literal(self):
        route = Route.compile(RouteBinding(path="/v1.0/items", method="GET", backend="app"))

        assert route.matches_path("/v1.0/items")
        assert not route.matches_path("/v1x0/items")

    @pytest.mark.unit
    def test_encoded_slash_stays_in_segment(self):
        route = Route.compile(RouteBinding(path="/users/{id}", method="GET", backend="app"))

        assert route.matches_path("/users/a%2Fb")
        assert not route.matches_path("/users/a/b")

    @pytest.mark.unit
    def test_encoded_literal_segment(self):
        route = Route.compile(RouteBinding(path="/users/me", method="GET", backend="app"))

        assert route.matches_path("/users/m%65")


class TestRoutingTransport:
    """Test request dispatch and URL rewriting."""

    @pytest.mark.unit
    async def test_routes_to_backend_host(self, transport, users):
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get("http://placeholder/users/42?expand=true")

        assert response.text == "users"
        request = users.requests[0]
        assert request.url == "http://users:8080/users/42?expand=true"
        assert request.headers["Host"] == "users:8080"

    @pytest.mark.unit
    async def test_joins_backend_base_path(self, transport, billing):
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.post("http://placeholder/invoices", json={"amount": 1})

        assert response.text == "billing"
        assert billing.requests[0].url == "https://billing.internal/api/invoices"
        assert billing.requests[0].headers["Host"] == "billing.internal"

    @pytest.mark.unit
    async def test_encoded_slash_routes_as_one_parameter(self, transport, users):
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get("http://placeholder/users/a%2Fb")

        assert response.text == "users"
        assert users.requests[0].url.raw_path == b"/users/a%2Fb"

    @pytest.mark.unit
    async def test_literal_path_preferred_over_template(self, transport, billing):
        async with httpx.AsyncClient(transport=transport) as client:
            response = await client.get("http://placeholder/users/me")

        assert response.text == "billing"

    @pytest.mark.unit
    async def test_unknown_path_raises(self, transport):
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RouteNotFoundError) as exc_info:
                await client.get("http://placeholder/orders")

        assert exc_info.value.method == "GET"
        assert exc_info.value.path == "/orders"

    @pytest.mark.unit
    async def test_unbound_method_raises(self, transport):
        async with httpx.AsyncClient(transport=transport) as client:
            with pytest.raises(RouteNotFoundError, match="other methods"):
                await client.delete("http://placeholder/users/42")

    @pytest.mark.unit
    def test_resolve(self, transport):
        assert transport.resolve("get", "/users/7").name == "users"
        assert transport.resolve("GET", "/users/7/invoices/9").name == "billing"

    @pytest.mark.unit
    def test_rejects_route_to_missing_backend(self, users):
        with pytest.raises(ValueError):
            RoutingTransport(
                routes=[RouteBinding(path="/x", method="GET", backend="nope")],
                backends={"users": _backend("users", "http://users:8080", users)},
            )

    @pytest.mark.unit
    async def test_aclose_closes_backends(self):
        closed = []

        class ClosingTransport(httpx.AsyncBaseTransport):
            def __init__(self, name):
                self.name = name

            async def handle_async_request(self, request):
                return httpx.Response(200)

            async def aclose(self):
                closed.append(self.name)

        transport = RoutingTransport(
            routes=[],
            backends={
                "a": Backend(name="a", url=httpx.URL("http://a"), transport=ClosingTransport("a")),
                "b": Backend(name="b", url=httpx.URL("http://b"), transport=ClosingTransport("b")),
            },
        )
        await transport.aclose()

        assert sorted(closed) == ["a", "b"]
