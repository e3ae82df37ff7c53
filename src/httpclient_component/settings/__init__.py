"""Settings sources and loading for transport configuration.

Example:
    ```python
    from httpclient_component.settings import MapSource, load_settings

    config = load_settings(MapSource({"content_type": "text/plain"}), DefaultConfig())
    ```
"""

from httpclient_component.settings.duration import Duration, duration_from_seconds, format_duration, parse_duration
from httpclient_component.settings.loader import coerce, load_settings
from httpclient_component.settings.sources import EnvSource, MapSource, MultiSource, SettingsSource

__all__ = [
    "Duration",
    "EnvSource",
    "MapSource",
    "MultiSource",
    "SettingsSource",
    "coerce",
    "duration_from_seconds",
    "format_duration",
    "load_settings",
    "parse_duration",
]
