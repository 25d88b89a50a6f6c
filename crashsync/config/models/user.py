"""User configuration models."""

from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .cache import SymbolCacheConfig
from .source_control import SourceControlConfig


class UserConfigData(BaseSettings):
    """User configuration data model with automatic environment variable support.

    Precedence order (highest to lowest):
    1. Environment variables (highest)
    2. Constructor arguments (file data)
    3. .env file
    4. Default values (lowest)

    Nested values use a double underscore, e.g.
    ``CRASHSYNC_SYMBOL_CACHE__MAX_AGE_DAYS=7``.
    """

    model_config = SettingsConfigDict(
        env_prefix="CRASHSYNC_",
        env_nested_delimiter="__",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: Any,
        env_settings: Any,
        dotenv_settings: Any,
        file_secret_settings: Any,
    ) -> tuple[Any, ...]:
        """Return sources in priority order: env > init > dotenv > file_secret."""
        return (
            env_settings,
            init_settings,
            dotenv_settings,
            file_secret_settings,
        )

    log_level: str = "WARNING"

    symbol_cache: SymbolCacheConfig = Field(default_factory=SymbolCacheConfig)

    source_control: SourceControlConfig = Field(default_factory=SourceControlConfig)

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a recognized value."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        upper_v = v.strip().upper()
        if upper_v not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return upper_v
