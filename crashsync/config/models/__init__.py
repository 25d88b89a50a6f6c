"""Configuration models organized by domain."""

from .cache import SymbolCacheConfig
from .source_control import (
    CHANGELIST_PLACEHOLDER,
    DistributionLayout,
    SourceControlConfig,
)
from .user import UserConfigData


__all__ = [
    "CHANGELIST_PLACEHOLDER",
    "DistributionLayout",
    "SourceControlConfig",
    "SymbolCacheConfig",
    "UserConfigData",
]
