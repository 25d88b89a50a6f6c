from .errors import (
    CacheInvariantError,
    ConfigError,
    CrashSyncError,
    SourceControlError,
    SymbolCacheError,
)
from .logging import setup_logging


__all__ = [
    "setup_logging",
    "CrashSyncError",
    "ConfigError",
    "SymbolCacheError",
    "CacheInvariantError",
    "SourceControlError",
]
