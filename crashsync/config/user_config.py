"""
User configuration management for crashsync.

This module handles user-specific configuration settings with multiple sources:
1. Environment variables (highest precedence)
2. Command-line provided config file
3. Config file in current directory
4. User's XDG config directory
5. Default values (lowest precedence)
"""

import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from crashsync.config.models import (
    SourceControlConfig,
    SymbolCacheConfig,
    UserConfigData,
)
from crashsync.core.errors import ConfigError
from crashsync.utils.xdg import get_xdg_config_dir


logger = logging.getLogger(__name__)

# Environment variable prefixes
ENV_PREFIX = "CRASHSYNC_"


class UserConfig:
    """
    Manages user-specific configuration for crashsync using Pydantic Settings.

    The configuration is loaded from multiple sources with the following precedence:
    1. Environment variables (highest precedence) - handled by Pydantic Settings
    2. Config files (YAML) - first existing file from the search paths
    3. Default values (lowest precedence) - defined in model
    """

    def __init__(self, cli_config_path: str | Path | None = None):
        """
        Initialize the user configuration handler.

        Args:
            cli_config_path: Optional config file path provided via CLI
        """
        self._config_sources: dict[str, str] = {}
        self._main_config_path: Path | None = None
        self._config_paths = self._generate_config_paths(cli_config_path)
        self._load_config()

    def _generate_config_paths(self, cli_config_path: str | Path | None) -> list[Path]:
        """Generate a list of config paths to search in order of precedence."""
        config_paths = []

        if cli_config_path:
            config_paths.append(Path(cli_config_path).expanduser().resolve())

        config_paths.extend(
            [Path.cwd() / "crashsync.yaml", Path.cwd() / ".crashsync.yml"]
        )

        xdg_dir = get_xdg_config_dir()
        config_paths.extend([xdg_dir / "config.yaml", xdg_dir / "config.yml"])

        return config_paths

    def _read_config_file(self, path: Path) -> dict[str, Any]:
        try:
            with path.open(encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Failed to read config file {path}: {e}") from e

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ConfigError(f"Config file {path} must contain a mapping")
        return data

    def _search_config_files(self) -> tuple[dict[str, Any], Path | None]:
        for path in self._config_paths:
            if path.is_file():
                return self._read_config_file(path), path
        return {}, None

    def _load_config(self) -> None:
        """Load configuration from config files and environment variables."""
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug(
                "Config search paths: %s", [str(p) for p in self._config_paths]
            )

        config_data, found_path = self._search_config_files()

        try:
            self._config = UserConfigData(**config_data)
        except ValidationError as e:
            source = found_path or "environment"
            raise ConfigError(f"Invalid configuration in {source}: {e}") from e

        if found_path:
            logger.debug("Loaded user configuration from %s", found_path)
            self._main_config_path = found_path
            self._track_file_sources(config_data, found_path.name)
        else:
            logger.info(
                "No user configuration files found. Using defaults with environment variables."
            )
            self._main_config_path = self._config_paths[-1]

        self._track_env_var_sources()

    def _track_file_sources(
        self, data: dict[str, Any], source: str, prefix: str = ""
    ) -> None:
        for key, value in data.items():
            dotted = f"{prefix}{key}"
            if isinstance(value, dict):
                self._track_file_sources(value, source, f"{dotted}.")
            else:
                self._config_sources[dotted] = source

    def _track_env_var_sources(self) -> None:
        for env_name in os.environ:
            if not env_name.upper().startswith(ENV_PREFIX):
                continue
            dotted = env_name[len(ENV_PREFIX) :].lower().replace("__", ".")
            self._config_sources[dotted] = f"environment ({env_name})"

    def get_source(self, key: str) -> str:
        """Get the source a configuration value was loaded from."""
        return self._config_sources.get(key, "default")

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key (e.g. 'symbol_cache.max_age_days')."""
        value: Any = self._config
        for part in key.split("."):
            if not hasattr(value, part):
                return default
            value = getattr(value, part)
        return value

    def get_log_level_int(self) -> int:
        """Get the configured log level as a logging module integer."""
        return getattr(logging, self._config.log_level, logging.WARNING)

    @property
    def config_path(self) -> Path | None:
        return self._main_config_path

    @property
    def symbol_cache(self) -> SymbolCacheConfig:
        return self._config.symbol_cache

    @property
    def source_control(self) -> SourceControlConfig:
        return self._config.source_control


def create_user_config(cli_config_path: str | Path | None = None) -> UserConfig:
    """Factory function to create UserConfig instance."""
    return UserConfig(cli_config_path=cli_config_path)
