"""Exception hierarchy for crashsync."""


class CrashSyncError(Exception):
    """Base class for all crashsync errors."""


class ConfigError(CrashSyncError):
    """Configuration could not be loaded or validated."""


class SymbolCacheError(CrashSyncError):
    """Error in symbol cache operations."""


class CacheInvariantError(SymbolCacheError):
    """A cache operation was requested for an entry that does not exist.

    Raised when the caller breaks the lookup-before-touch contract. It is a
    logic error, not a runtime condition, and is never recovered from.
    """


class SourceControlError(CrashSyncError):
    """The source control system is unavailable or a command failed."""
