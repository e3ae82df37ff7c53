"""Top-level factory: pick and build a transport from settings.

Settings live under ``httpclient`` by default:

```python
from httpclient_component import MapSource, new

transport = new(MapSource({"httpclient": {"type": "SMART", "smart": {"openapi": document}}}))

async with httpx.AsyncClient(transport=transport) as client:
    await client.get("http://placeholder/healthcheck")
```

With ``EnvSource`` the same settings come from ``HTTPCLIENT_TYPE`` and
``HTTPCLIENT_SMART_OPENAPI``.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum

import httpx

from httpclient_component.default import DefaultComponent, DefaultConfig
from httpclient_component.errors import UnknownTransportTypeError
from httpclient_component.settings import SettingsSource, load_settings
from httpclient_component.smart import SmartComponent, SmartConfig

logger = logging.getLogger(__name__)

SETTINGS_PATH: tuple[str, ...] = ("httpclient",)


class TransportType(str, Enum):
    DEFAULT = "DEFAULT"
    SMART = "SMART"

    @classmethod
    def parse(cls, value: str) -> "TransportType":
        """Look up a transport type by name, ignoring case.

        Raises:
            UnknownTransportTypeError: If ``value`` names no transport type.
        """
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            known = ", ".join(t.value for t in cls)
            raise UnknownTransportTypeError(
                f"Unknown HTTP client type {value!r} (expected one of: {known})",
                transport_type=value,
            ) from None


@dataclass
class Config:
    """Settings for the HTTP client transport."""

    type: str = field(
        default=TransportType.DEFAULT.value,
        metadata={"description": "Transport to build: DEFAULT or SMART."},
    )
    default: DefaultConfig = field(default_factory=DefaultConfig)
    smart: SmartConfig = field(default_factory=SmartConfig)


class HTTPComponent:
    """Dispatches to the DEFAULT or SMART component based on ``Config.type``."""

    def __init__(self, default: DefaultComponent | None = None, smart: SmartComponent | None = None) -> None:
        self.default = default or DefaultComponent()
        self.smart = smart or SmartComponent()

    def settings(self) -> Config:
        return Config(default=self.default.settings(), smart=self.smart.settings())

    def new(self, config: Config) -> httpx.AsyncBaseTransport:
        transport_type = TransportType.parse(config.type)
        logger.debug(f"Building {transport_type.value} HTTP client transport")
        if transport_type is TransportType.SMART:
            return self.smart.new(config.smart)
        return self.default.new(config.default)


def load(
    source: SettingsSource,
    component: HTTPComponent | None = None,
    path: tuple[str, ...] = SETTINGS_PATH,
) -> Config:
    """Read a ``Config`` from ``source``, starting from the component's defaults."""
    component = component or HTTPComponent()
    return load_settings(source, component.settings(), path)


def new(
    source: SettingsSource,
    component: HTTPComponent | None = None,
    path: tuple[str, ...] = SETTINGS_PATH,
) -> httpx.AsyncBaseTransport:
    """Load settings from ``source`` and build the configured transport.

    Raises:
        ConfigurationError: If settings are invalid, the type is unknown, or
            the SMART OpenAPI document is missing or malformed.
    """
    component = component or HTTPComponent()
    return component.new(load(source, component, path))
