"""Backend declarations and path bindings read from an OpenAPI document.

The smart transport is configured entirely by ``x-transportd`` extension
fields. The top-level extension declares backends, and each operation (or
path item) names the backend its requests are sent to:

```yaml
openapi: 3.0.0
x-transportd:
  backends:
    - app
  app:
    host: "http://app:8081"
    pool:
      ttl: "24h"
      count: 1
paths:
  /healthcheck:
    get:
      x-transportd:
        backend: app
```
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Annotated, Any

import httpx
import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    PositiveInt,
    StringConstraints,
    ValidationError,
    field_validator,
    model_validator,
)

from httpclient_component.errors import OpenAPIDocumentError, UnknownBackendError
from httpclient_component.settings.duration import Duration

logger = logging.getLogger(__name__)

EXTENSION_KEY = "x-transportd"

HTTP_METHODS: tuple[str, ...] = ("get", "put", "post", "delete", "options", "head", "patch", "trace")


NonEmptyString = Annotated[str, StringConstraints(strict=True, min_length=1)]


class PoolSpec(BaseModel):
    """Connection pool settings for one backend."""

    model_config = ConfigDict(frozen=True)

    ttl: Duration | None = None  # None: transports are never recycled
    count: PositiveInt = Field(default=1, strict=True)

    @field_validator("ttl")
    @classmethod
    def ttl_positive(cls, ttl: timedelta | None) -> timedelta | None:
        if ttl is not None and ttl <= timedelta(0):
            raise ValueError("pool ttl must be positive")
        return ttl


class BackendSpec(BaseModel):
    """A named upstream host and its pool settings."""

    model_config = ConfigDict(frozen=True)

    name: NonEmptyString
    host: NonEmptyString
    pool: PoolSpec = Field(default_factory=PoolSpec)

    @field_validator("host")
    @classmethod
    def absolute_http_url(cls, host: str) -> str:
        try:
            url = httpx.URL(host)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid host {host!r}: {e}") from e
        if url.scheme not in ("http", "https") or not url.host:
            raise ValueError(f"host must be an absolute http(s) URL, got {host!r}")
        return host

    @field_validator("pool", mode="before")
    @classmethod
    def default_pool(cls, pool: Any) -> Any:
        return PoolSpec() if pool is None else pool


class TransportdExtension(BaseModel):
    """The top-level ``x-transportd`` object.

    Backends are listed by name under ``backends`` and each one is declared
    under its own name beside the list. The declarations are gathered into
    ``declarations`` before validation.
    """

    backends: list[NonEmptyString] = Field(min_length=1)
    declarations: dict[str, BackendSpec] = Field(default_factory=dict)

    @model_validator(mode="before")
    @classmethod
    def gather_declarations(cls, data: Any) -> Any:
        if not isinstance(data, Mapping) or not isinstance(data.get("backends"), list):
            return data

        declarations = {}
        for name in data["backends"]:
            if isinstance(name, str) and name in data:
                declaration = data[name]
                declarations[name] = {**declaration, "name": name} if isinstance(declaration, Mapping) else declaration
        return {"backends": data["backends"], "declarations": declarations}

    @model_validator(mode="after")
    def backends_declared_once(self) -> "TransportdExtension":
        seen: set[str] = set()
        for name in self.backends:
            if name in seen:
                raise ValueError(f"backend '{name}' is listed more than once")
            if name not in self.declarations:
                raise ValueError(f"backend '{name}' is listed but has no '{EXTENSION_KEY}.{name}' declaration")
            seen.add(name)
        return self


class BindingExtension(BaseModel):
    """The ``x-transportd`` object on a path item or operation."""

    backend: NonEmptyString | None = None


@dataclass(frozen=True)
class RouteBinding:
    """An OpenAPI path template and method bound to a backend."""

    path: str
    method: str
    backend: str


@dataclass
class TransportdSpec:
    """Everything the smart transport needs from the OpenAPI document."""

    backends: dict[str, BackendSpec]
    routes: list[RouteBinding]


def load_document(text: str) -> dict[str, Any]:
    """Parse OpenAPI document text (YAML or JSON) into a mapping.

    Raises:
        OpenAPIDocumentError: If the text is empty, does not parse, or is not
            shaped like an OpenAPI document.
    """
    if not text or not text.strip():
        raise OpenAPIDocumentError("OpenAPI document is empty")

    try:
        document = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise OpenAPIDocumentError(f"OpenAPI document is not valid YAML or JSON: {e}") from e

    if not isinstance(document, Mapping):
        raise OpenAPIDocumentError(f"OpenAPI document must be a mapping, got {type(document).__name__}")
    if "openapi" not in document:
        raise OpenAPIDocumentError("OpenAPI document is missing the 'openapi' version field")
    if not isinstance(document.get("paths"), Mapping):
        raise OpenAPIDocumentError("OpenAPI document is missing a 'paths' mapping")

    return dict(document)


def parse_transportd(document: Mapping[str, Any]) -> TransportdSpec:
    """Extract backends and route bindings from a parsed OpenAPI document.

    Raises:
        OpenAPIDocumentError: If backend declarations or bindings are missing
            or invalid.
        UnknownBackendError: If a path binds to an undeclared backend.
    """
    extension = document.get(EXTENSION_KEY)
    if extension is None:
        raise OpenAPIDocumentError(f"OpenAPI document is missing a top-level '{EXTENSION_KEY}' mapping")

    try:
        backends = TransportdExtension.model_validate(extension).declarations
        routes = _parse_routes(document["paths"], backends)
    except ValidationError as e:
        raise OpenAPIDocumentError(f"Invalid '{EXTENSION_KEY}' configuration: {e}") from e

    logger.debug(f"Parsed {len(backends)} backend(s) and {len(routes)} route binding(s)")
    return TransportdSpec(backends=backends, routes=routes)


def parse_openapi(text: str) -> TransportdSpec:
    """Parse document text and extract its transport configuration."""
    return parse_transportd(load_document(text))


def _backend_name(item: Mapping[str, Any]) -> str | None:
    extension = item.get(EXTENSION_KEY)
    if extension is None:
        return None
    return BindingExtension.model_validate(extension).backend


def _parse_routes(paths: Mapping[str, Any], backends: Mapping[str, BackendSpec]) -> list[RouteBinding]:
    routes = []
    for path, item in paths.items():
        if not isinstance(item, Mapping):
            continue
        path_backend = _backend_name(item)

        for method in HTTP_METHODS:
            operation = item.get(method)
            if not isinstance(operation, Mapping):
                continue

            backend = _backend_name(operation) or path_backend
            if backend is None:
                logger.debug(f"{method.upper()} {path} has no backend binding and will not be routed")
                continue
            if backend not in backends:
                raise UnknownBackendError(
                    f"{method.upper()} {path} is bound to undeclared backend '{backend}'",
                    backend=backend,
                    path=str(path),
                )
            routes.append(RouteBinding(path=str(path), method=method.upper(), backend=backend))

    return routes
