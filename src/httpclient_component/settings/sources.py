"""Settings sources that feed component configuration.

A source answers one question: what value, if any, is stored at a path of
setting names such as ``("httpclient", "smart", "openapi")``. Three sources
are provided:

1. ``MapSource``: nested dictionaries (tests, embedded config, parsed YAML)
2. ``EnvSource``: environment variables, optionally seeded from a .env file
3. ``MultiSource``: several sources in priority order (first match wins)

Example:
    ```python
    from httpclient_component.settings import EnvSource, MapSource, MultiSource

    source = MultiSource(
        EnvSource(),  # HTTPCLIENT_TYPE=SMART overrides the map below
        MapSource({"httpclient": {"type": "DEFAULT"}}),
    )
    source.get("httpclient", "type")
    ```

Security Considerations:
    - Values are never logged, only the setting name and which source had it
    - Thread-safe dotenv loading with lock
"""

import logging
import os
from collections.abc import Mapping
from threading import Lock
from typing import Any, Protocol, runtime_checkable

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


@runtime_checkable
class SettingsSource(Protocol):
    """Anything that can look up a setting by its path."""

    def get(self, *path: str) -> Any | None:
        """Return the value stored at ``path`` or None when it is absent."""
        ...


class MapSource:
    """Settings backed by nested mappings.

    Keys are matched case-insensitively so ``{"HTTPClient": {"Type": ...}}``
    and ``{"httpclient": {"type": ...}}`` are equivalent.

    Example:
        ```python
        source = MapSource({"httpclient": {"type": "SMART", "smart": {"openapi": doc}}})
        source.get("httpclient", "smart", "openapi")
        ```
    """

    def __init__(self, values: Mapping[str, Any]):
        self._values = values

    def get(self, *path: str) -> Any | None:
        current: Any = self._values
        for segment in path:
            if not isinstance(current, Mapping):
                return None
            current = self._lookup(current, segment)
            if current is None:
                return None
        return current

    @staticmethod
    def _lookup(mapping: Mapping[str, Any], segment: str) -> Any | None:
        if segment in mapping:
            return mapping[segment]
        lowered = segment.lower()
        for key, value in mapping.items():
            if str(key).lower() == lowered:
                return value
        return None

    def __repr__(self) -> str:
        return f"MapSource(keys={sorted(str(k) for k in self._values)})"


class EnvSource:
    """Settings backed by environment variables.

    Path segments are upper-cased and joined with underscores, so
    ``("httpclient", "smart", "openapi")`` is read from
    ``HTTPCLIENT_SMART_OPENAPI`` (or ``<PREFIX>_HTTPCLIENT_SMART_OPENAPI``
    when a prefix is configured).

    Attributes:
        _dotenv_loaded: Whether .env file has been loaded.
        _dotenv_lock: Thread lock for safe dotenv loading.
    """

    def __init__(
        self,
        prefix: str = "",
        *,
        dotenv_path: str | None = None,
        load_dotenv: bool = True,
        environ: Mapping[str, str] | None = None,
    ):
        """Initialize environment source.

        Args:
            prefix: Optional prefix prepended to every variable name.
            dotenv_path: Path to .env file. If None, searches parent directories
                for .env file (default behavior of python-dotenv).
            load_dotenv: Whether to load .env file. Set to False to skip
                .env file loading (useful for testing or when not using .env).
            environ: Mapping to read instead of ``os.environ``.
        """
        self._prefix = prefix.strip("_").upper()
        self._environ = environ
        self._dotenv_loaded = False
        self._dotenv_lock = Lock()
        self._dotenv_path = dotenv_path
        self._load_dotenv_enabled = load_dotenv

        if self._load_dotenv_enabled:
            self._ensure_dotenv_loaded()

    def _ensure_dotenv_loaded(self) -> None:
        """Load the .env file once, even when called from several threads."""
        if self._dotenv_loaded:
            return

        with self._dotenv_lock:
            if self._dotenv_loaded:
                return

            try:
                load_dotenv(dotenv_path=self._dotenv_path)
                self._dotenv_loaded = True
                logger.debug("Loaded .env file for settings resolution")
            except Exception as e:
                logger.warning(f"Failed to load .env file: {e}")
                # Continue without .env
                self._dotenv_loaded = True

    def variable_name(self, *path: str) -> str:
        """Return the environment variable name used for ``path``."""
        segments = [segment.upper() for segment in path]
        if self._prefix:
            segments.insert(0, self._prefix)
        return "_".join(segments)

    def get(self, *path: str) -> Any | None:
        environ = self._environ if self._environ is not None else os.environ
        name = self.variable_name(*path)
        if name in environ:
            logger.debug(f"Resolved setting from environment variable '{name}'")
            return environ[name]
        return None

    def __repr__(self) -> str:
        return f"EnvSource(prefix={self._prefix!r})"


class MultiSource:
    """Combine sources in priority order; the first one holding a value wins."""

    def __init__(self, *sources: SettingsSource):
        self._sources = sources

    def get(self, *path: str) -> Any | None:
        for source in self._sources:
            value = source.get(*path)
            if value is not None:
                return value
        return None

    def __repr__(self) -> str:
        return f"MultiSource({', '.join(repr(s) for s in self._sources)})"
