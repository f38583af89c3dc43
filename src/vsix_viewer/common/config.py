"""Layered TOML configuration with environment overrides."""

import logging
import os
from pathlib import Path
from typing import Any, Dict, Generic, Iterator, List, Optional, Tuple, Type, TypeVar

import platformdirs
import toml
from pydantic import BaseModel, ValidationError

from .errors import ConfigurationError

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)

# VSIX_VIEWER_VIEWER__SHOW_COUNT_BADGE -> viewer.show_count_badge
ENV_NESTING_SEPARATOR = "__"
CONFIG_FILE_NAME = "config.toml"

_TRUE_WORDS = ("true", "yes", "on")
_FALSE_WORDS = ("false", "no", "off")


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge ``override`` into a copy of ``base``; nested tables merge key by key."""
    merged = dict(base)
    for key, value in override.items():
        if isinstance(merged.get(key), dict) and isinstance(value, dict):
            merged[key] = deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def convert_env_value(raw: str) -> Any:
    """Interpret an environment string as bool, number, list or plain string."""
    lowered = raw.strip().lower()
    if lowered in _TRUE_WORDS:
        return True
    if lowered in _FALSE_WORDS:
        return False

    for number_type in (int, float):
        try:
            return number_type(raw)
        except ValueError:
            pass

    if "," in raw:
        return [part.strip() for part in raw.split(",") if part.strip()]
    return raw


class ConfigLoader(Generic[T]):
    """Builds a validated config object from every source that exists.

    Sources, lowest priority first:

    1. defaults file: the explicit ``defaults_path``, else ``./config/defaults.toml``
    2. system file: ``/etc/<app>/config.toml`` (``%PROGRAMDATA%`` on Windows)
    3. user file: ``platformdirs.user_config_dir(<app>)/config.toml``
    4. environment variables named ``<APP>_<SECTION>__<KEY>``

    Only an explicitly requested defaults file has to exist.
    """

    def __init__(self, app_name: str = "vsix-viewer", config_class: Optional[Type[T]] = None) -> None:
        self.app_name = app_name
        self.config_class = config_class
        self.loaded_files: List[Path] = []
        self._config: Optional[T] = None

    @property
    def env_prefix(self) -> str:
        return self.app_name.upper().replace('-', '_') + "_"

    @property
    def config(self) -> T:
        """The loaded configuration, loading it on first access."""
        if self._config is None:
            self._config = self.load()
        return self._config

    def system_config_path(self) -> Path:
        if os.name == "nt":
            base = Path(os.environ.get("PROGRAMDATA", "C:\\ProgramData"))
        else:
            base = Path("/etc")
        return base / self.app_name / CONFIG_FILE_NAME

    def user_config_path(self) -> Path:
        return Path(platformdirs.user_config_dir(appname=self.app_name, appauthor=False)) / CONFIG_FILE_NAME

    def _file_sources(self, defaults_path: Optional[Path]) -> Iterator[Tuple[str, Path]]:
        if defaults_path is not None:
            defaults_path = Path(defaults_path)
            if not defaults_path.is_file():
                raise ConfigurationError(f"Config file not found: {defaults_path}", path=str(defaults_path))
            yield "defaults", defaults_path
        else:
            yield "defaults", Path.cwd() / "config" / "defaults.toml"
        yield "system", self.system_config_path()
        yield "user", self.user_config_path()

    def load(self, defaults_path: Optional[Path] = None) -> T:
        """Merge all sources and validate the result.

        Raises:
            ConfigurationError: If a file is unreadable or malformed, or the
                merged values fail validation
        """
        merged: Dict[str, Any] = {}
        self.loaded_files = []

        for source, path in self._file_sources(defaults_path):
            if not path.is_file():
                logger.debug(f"No {source} config at {path}")
                continue
            merged = deep_merge(merged, self._read_toml(path))
            self.loaded_files.append(path)
            logger.debug(f"Loaded {source} config from {path}")

        merged = deep_merge(merged, self.env_overrides())

        if self.config_class is None:
            self._config = merged
            return self._config

        try:
            self._config = self.config_class(**merged)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}", app_name=self.app_name) from e
        return self._config

    def env_overrides(self) -> Dict[str, Any]:
        """Nested override table built from prefixed environment variables."""
        overrides: Dict[str, Any] = {}
        prefix = self.env_prefix

        for name, raw in sorted(os.environ.items()):
            if not name.startswith(prefix):
                continue
            keys = name[len(prefix):].lower().split(ENV_NESTING_SEPARATOR)
            if not all(keys):
                logger.warning(f"Ignoring malformed config environment variable: {name}")
                continue

            table = overrides
            for key in keys[:-1]:
                if not isinstance(table.get(key), dict):
                    table[key] = {}
                table = table[key]
            table[keys[-1]] = convert_env_value(raw)

        return overrides

    def _read_toml(self, path: Path) -> Dict[str, Any]:
        try:
            return toml.load(path)
        except (toml.TomlDecodeError, OSError) as e:
            raise ConfigurationError(f"Failed to read config file {path}: {e}", path=str(path)) from e
