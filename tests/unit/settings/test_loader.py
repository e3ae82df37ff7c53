"""Tests for loading config dataclasses from settings sources."""

from dataclasses import dataclass, field
from datetime import timedelta

import pytest

from httpclient_component.default import DefaultConfig
from httpclient_component.errors import SettingsError
from httpclient_component.settings import EnvSource, MapSource, coerce, load_settings


@dataclass
class _Inner:
    name: str = "inner"
    enabled: bool = False


@dataclass
class _Outer:
    count: int = 1
    ratio: float = 0.5
    ttl: timedelta | None = None
    inner: _Inner = field(default_factory=_Inner)


@pytest.mark.unit
def test_defaults_kept_when_source_empty():
    """Fields the source has no value for keep their defaults."""
    config = load_settings(MapSource({}), _Outer())

    assert config == _Outer()


@pytest.mark.unit
def test_values_overlaid_and_coerced():
    """String values from a source are converted to the annotated types."""
    source = MapSource(
        {
            "root": {
                "count": "3",
                "ratio": "0.25",
                "ttl": "1h30m",
                "inner": {"name": "custom", "enabled": "yes"},
            }
        }
    )

    config = load_settings(source, _Outer(), ("root",))

    assert config.count == 3
    assert config.ratio == 0.25
    assert config.ttl == timedelta(hours=1, minutes=30)
    assert config.inner.name == "custom"
    assert config.inner.enabled is True


@pytest.mark.unit
def test_loads_in_place():
    """The instance passed in is updated and returned."""
    config = _Outer()

    result = load_settings(MapSource({"count": 7}), config)

    assert result is config
    assert config.count == 7


@pytest.mark.unit
def test_env_source_feeds_default_config(monkeypatch):
    """DefaultConfig fields load from HTTPCLIENT_DEFAULT_* variables."""
    monkeypatch.setenv("HTTPCLIENT_DEFAULT_CONTENT_TYPE", "application/xml")
    monkeypatch.setenv("HTTPCLIENT_DEFAULT_MAX_CONNECTIONS", "10")
    monkeypatch.setenv("HTTPCLIENT_DEFAULT_KEEPALIVE_EXPIRY", "30s")

    config = load_settings(EnvSource(load_dotenv=False), DefaultConfig(), ("httpclient", "default"))

    assert config.content_type == "application/xml"
    assert config.max_connections == 10
    assert config.keepalive_expiry == timedelta(seconds=30)
    assert config.max_keepalive_connections == 100


@pytest.mark.unit
def test_invalid_value_raises_settings_error():
    """Values that cannot be converted raise SettingsError with the path."""
    with pytest.raises(SettingsError) as exc_info:
        load_settings(MapSource({"root": {"count": "many"}}), _Outer(), ("root",))

    assert exc_info.value.path == ("root", "count")
    assert "root.count" in str(exc_info.value)


@pytest.mark.unit
def test_rejects_non_dataclass():
    """Only dataclass instances can be loaded."""
    with pytest.raises(TypeError):
        load_settings(MapSource({}), object())


class TestCoerce:
    """Test conversion of raw values to annotated types."""

    @pytest.mark.unit
    def test_bool_values(self):
        assert coerce("true", bool) is True
        assert coerce("Off", bool) is False
        assert coerce(True, bool) is True
        with pytest.raises(SettingsError):
            coerce("maybe", bool)

    @pytest.mark.unit
    def test_int_values(self):
        assert coerce("42", int) == 42
        assert coerce(42.0, int) == 42
        with pytest.raises(SettingsError):
            coerce("many", int)
        with pytest.raises(SettingsError):
            coerce(1.5, int)

    @pytest.mark.unit
    def test_timedelta_values(self):
        assert coerce("24h", timedelta) == timedelta(hours=24)
        assert coerce(90, timedelta) == timedelta(seconds=90)
        assert coerce(timedelta(minutes=1), timedelta) == timedelta(minutes=1)
        with pytest.raises(SettingsError):
            coerce("soon", timedelta)
        with pytest.raises(SettingsError):
            coerce(True, timedelta)

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [1e300, float("inf"), float("nan"), "99999999999999h"])
    def test_out_of_range_timedelta(self, value):
        """Non-finite or oversized durations raise SettingsError."""
        with pytest.raises(SettingsError) as exc_info:
            coerce(value, timedelta, ("root", "ttl"))

        assert exc_info.value.path == ("root", "ttl")

    @pytest.mark.unit
    def test_optional_unwrapped(self):
        assert coerce("5m", timedelta | None) == timedelta(minutes=5)

    @pytest.mark.unit
    def test_str_rejects_structures(self):
        assert coerce(3, str) == "3"
        with pytest.raises(SettingsError):
            coerce({"openapi": "3.0.0"}, str)
