"""Result models for sync operations."""

from enum import Enum
from pathlib import Path
from typing import Annotated

from pydantic import Field

from crashsync.models.base import CrashSyncBaseModel
from crashsync.symbols.cache.models import CacheEntry


class FetchStatus(str, Enum):
    """Outcome of an artifact fetch."""

    OK = "ok"
    NOT_FOUND = "not_found"
    UNAVAILABLE = "unavailable"
    INVALID = "invalid"


class CrashSyncStatus(str, Enum):
    """Terminal state of a crash sync request."""

    CACHED = "cached"
    FRESH = "fresh"
    UNCACHED = "uncached"
    NO_LABEL = "no_label"
    SYNC_FAILED = "sync_failed"
    UNAVAILABLE = "unavailable"
    NOT_INITIALIZED = "not_initialized"
    INVALID = "invalid"


class ArtifactFetchResult(CrashSyncBaseModel):
    """Files staged by one fetch from source control."""

    success: bool
    status: FetchStatus = FetchStatus.OK
    label: str = ""
    staging_root: Path | None = None
    staged_files: Annotated[list[Path], Field(default_factory=list)]
    error_message: str | None = None

    @property
    def staged_count(self) -> int:
        return len(self.staged_files)


class CrashSyncResult(CrashSyncBaseModel):
    """Result of a crash sync request."""

    success: bool
    status: CrashSyncStatus
    label: str = ""
    entry: CacheEntry | None = None
    staged_files: Annotated[list[Path], Field(default_factory=list)]
    error_message: str | None = None

    @property
    def from_cache(self) -> bool:
        return self.status == CrashSyncStatus.CACHED
