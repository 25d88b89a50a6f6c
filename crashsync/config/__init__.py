"""Configuration package for crashsync."""

from .models import (
    CHANGELIST_PLACEHOLDER,
    DistributionLayout,
    SourceControlConfig,
    SymbolCacheConfig,
    UserConfigData,
)
from .user_config import UserConfig, create_user_config


__all__ = [
    "CHANGELIST_PLACEHOLDER",
    "DistributionLayout",
    "SourceControlConfig",
    "SymbolCacheConfig",
    "UserConfig",
    "UserConfigData",
    "create_user_config",
]
