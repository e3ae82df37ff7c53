"""Duration strings in the ``1h30m`` / ``500ms`` / ``24h`` notation.

Example:
    ```python
    from httpclient_component.settings.duration import parse_duration

    parse_duration("24h")  # timedelta(days=1)
    parse_duration("1h30m")  # timedelta(seconds=5400)
    parse_duration("1.5s")  # timedelta(seconds=1.5)
    ```
"""

import re
from datetime import timedelta
from typing import Annotated, Any

from pydantic import BeforeValidator

# Microseconds per unit. Nanoseconds are kept so "1500ns" parses, but
# timedelta truncates anything below a microsecond.
_UNITS: dict[str, float] = {
    "ns": 0.001,
    "us": 1,
    "µs": 1,
    "μs": 1,
    "ms": 1_000,
    "s": 1_000_000,
    "m": 60_000_000,
    "h": 3_600_000_000,
}

_COMPONENT = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string into a ``timedelta``.

    Args:
        value: A sequence of decimal numbers each followed by a unit
            (``ns``, ``us``, ``ms``, ``s``, ``m``, ``h``), optionally signed.
            A bare ``"0"`` is accepted.

    Returns:
        The parsed duration.

    Raises:
        ValueError: If the string is empty or contains anything besides
            number/unit pairs.
    """
    text = value.strip()
    if not text:
        raise ValueError("invalid duration: empty string")

    sign = 1
    if text[0] in "+-":
        sign = -1 if text[0] == "-" else 1
        text = text[1:]

    if text == "0":
        return timedelta(0)

    total = 0.0
    position = 0
    while position < len(text):
        match = _COMPONENT.match(text, position)
        if match is None:
            raise ValueError(f"invalid duration: {value!r}")
        number, unit = match.groups()
        total += float(number) * _UNITS[unit]
        position = match.end()

    if position == 0:
        raise ValueError(f"invalid duration: {value!r}")

    try:
        return timedelta(microseconds=sign * total)
    except OverflowError:
        raise ValueError(f"invalid duration: {value!r} is out of range") from None


def duration_from_seconds(seconds: float) -> timedelta:
    """Convert a number of seconds to a ``timedelta``.

    Raises:
        ValueError: If ``seconds`` is not finite or does not fit a timedelta.
    """
    try:
        return timedelta(seconds=seconds)
    except OverflowError:
        raise ValueError(f"duration of {seconds} seconds is out of range") from None


def _to_timedelta(value: Any) -> Any:
    if isinstance(value, bool):
        raise ValueError("expected a duration, got a boolean")
    if isinstance(value, (int, float)):
        return duration_from_seconds(value)
    if isinstance(value, str):
        return parse_duration(value)
    return value


# timedelta accepting "1h30m" strings and numbers of seconds
Duration = Annotated[timedelta, BeforeValidator(_to_timedelta)]


def format_duration(value: timedelta) -> str:
    """Render a ``timedelta`` back into the compact ``1h2m3.5s`` notation."""
    micros = round(value / timedelta(microseconds=1))
    if micros == 0:
        return "0s"

    sign = "-" if micros < 0 else ""
    micros = abs(micros)
    hours, micros = divmod(micros, 3_600_000_000)
    minutes, micros = divmod(micros, 60_000_000)

    parts = []
    if hours:
        parts.append(f"{hours}h")
    if minutes:
        parts.append(f"{minutes}m")
    if micros:
        seconds = f"{micros / 1_000_000:.6f}".rstrip("0").rstrip(".")
        parts.append(f"{seconds}s")
    return sign + "".join(parts)
