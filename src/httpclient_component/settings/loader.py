"""Populate configuration dataclasses from a settings source.

Each field of a config dataclass is looked up at ``path + (field_name,)``.
Nested dataclasses are walked recursively, and raw values are converted to
the type annotated on the field. Fields the source has no value for keep
their defaults.
"""

import dataclasses
import functools
import logging
import types
import typing
from datetime import timedelta
from typing import Any, TypeVar

from pydantic import ConfigDict, TypeAdapter, ValidationError

from httpclient_component.errors import SettingsError
from httpclient_component.settings.duration import Duration
from httpclient_component.settings.sources import SettingsSource

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Numbers in a source may back string fields, e.g. a content type read from YAML
_LAX_STRINGS = ConfigDict(coerce_numbers_to_str=True)


def load_settings(source: SettingsSource, config: T, path: tuple[str, ...] = ()) -> T:
    """Overlay values from ``source`` onto the dataclass instance ``config``.

    Args:
        source: Where setting values come from.
        config: A dataclass instance holding defaults. It is updated in place.
        path: Setting path of ``config`` itself, e.g. ``("httpclient",)``.

    Returns:
        The same ``config`` instance, for chaining.

    Raises:
        SettingsError: If a value cannot be converted to the field's type.
    """
    if not dataclasses.is_dataclass(config) or isinstance(config, type):
        raise TypeError(f"expected a dataclass instance, got {type(config).__name__}")

    hints = typing.get_type_hints(type(config))
    for field in dataclasses.fields(config):
        field_path = (*path, field.name)
        current = getattr(config, field.name)

        if dataclasses.is_dataclass(current) and not isinstance(current, type):
            load_settings(source, current, field_path)
            continue

        raw = source.get(*field_path)
        if raw is None:
            continue

        setattr(config, field.name, coerce(raw, hints.get(field.name, Any), field_path))
        logger.debug(f"Loaded setting {'.'.join(field_path)}")

    return config


def coerce(value: Any, annotation: Any, path: tuple[str, ...] = ()) -> Any:
    """Convert a raw setting value to ``annotation``.

    Conversion is done by pydantic in lax mode, so ``"3"`` loads as an int
    and ``"yes"`` as a bool. ``timedelta`` fields also accept ``1h30m``
    duration strings and numbers of seconds.

    Raises:
        SettingsError: If the value cannot be converted.
    """
    try:
        return _adapter(annotation).validate_python(value)
    except ValidationError as e:
        name = ".".join(path) or "<value>"
        reasons = "; ".join(error["msg"] for error in e.errors())
        raise SettingsError(f"Invalid value for setting {name}: {reasons}", path=path) from e


@functools.lru_cache(maxsize=None)
def _adapter(annotation: Any) -> TypeAdapter[Any]:
    return TypeAdapter(_with_durations(annotation), config=_LAX_STRINGS)


def _with_durations(annotation: Any) -> Any:
    if annotation is timedelta:
        return Duration
    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        return typing.Union[tuple(_with_durations(arg) for arg in typing.get_args(annotation))]
    return annotation
