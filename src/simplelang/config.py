"""
Process-wide settings for the SimpleLang tools.

Settings are a flat key/value mapping. Keys are normalized so that
``max-errors`` and ``max_errors`` name the same setting. The store can be
loaded from and saved to a YAML file:

    debug: false
    warnings: true
    max_errors: 10
    show_source: true
    encoding: utf-8

The language passes never read this store; the driver and CLI pass the
relevant values down as plain arguments.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Iterator, Optional, Tuple, Union

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS: Dict[str, Any] = {
    "debug": False,
    "warnings": True,
    "max_errors": 10,
    "show_source": True,
    "encoding": "utf-8",
}

_TRUE_STRINGS = {"true", "1", "yes", "on"}


class ConfigError(Exception):
    """A configuration file could not be read as a settings mapping."""


def _normalize(key: str) -> str:
    return key.strip().replace("-", "_")


class Config:
    """A key/value settings store seeded with DEFAULT_SETTINGS."""

    def __init__(self, values: Optional[Dict[str, Any]] = None):
        self._values: Dict[str, Any] = dict(DEFAULT_SETTINGS)
        for key, value in (values or {}).items():
            self.set(key, value)

    def get(self, key: str, default: Any = None) -> Any:
        return self._values.get(_normalize(key), default)

    def set(self, key: str, value: Any) -> None:
        self._values[_normalize(key)] = value

    def get_bool(self, key: str, default: bool = False) -> bool:
        value = self.get(key)
        if value is None:
            return default
        if isinstance(value, bool):
            return value
        return str(value).strip().lower() in _TRUE_STRINGS

    def get_int(self, key: str, default: int = 0) -> int:
        value = self.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return int(value)
        except (TypeError, ValueError):
            return default

    def get_float(self, key: str, default: float = 0.0) -> float:
        value = self.get(key)
        if value is None or isinstance(value, bool):
            return default
        try:
            return float(value)
        except (TypeError, ValueError):
            return default

    def items(self) -> Iterator[Tuple[str, Any]]:
        return iter(sorted(self._values.items()))

    def reset(self) -> None:
        """Restore the default settings."""
        self._values = dict(DEFAULT_SETTINGS)

    def load(self, path: Union[str, Path]) -> bool:
        """
        Merge settings from a YAML file.

        Returns False (and logs a warning) if the file does not exist.
        Raises ConfigError if the file is not valid YAML or not a mapping.
        """
        path = Path(path)
        if not path.exists():
            logger.warning("config file not found: %s", path)
            return False

        try:
            with path.open("r", encoding="utf-8") as fp:
                data = yaml.safe_load(fp) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping of settings, got {type(data).__name__}")

        for key, value in data.items():
            self.set(str(key), value)
        logger.debug("loaded %d setting(s) from %s", len(data), path)
        return True

    def save(self, path: Union[str, Path]) -> None:
        """Write the current settings to a YAML file."""
        path = Path(path)
        with path.open("w", encoding="utf-8") as fp:
            yaml.safe_dump(dict(self.items()), fp, sort_keys=False)


# Global singleton store
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the process-wide settings store."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_config(path: Union[str, Path]) -> Config:
    """Load a YAML file into the process-wide store and return it."""
    config = get_config()
    config.load(path)
    return config
