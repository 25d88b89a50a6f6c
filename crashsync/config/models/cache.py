"""Symbol cache configuration models."""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator


class SymbolCacheConfig(BaseModel):
    """Configuration for the on-disk symbol cache."""

    enabled: bool = Field(
        default=False, description="Whether synced symbols are kept in the cache"
    )

    cache_root_path: Path | None = Field(
        default=None,
        description="Directory holding one subdirectory per cached label",
    )

    max_cache_size_gb: int = Field(
        default=128,
        ge=0,
        description="Cache size above which old entries are evicted (0 disables the cap)",
    )

    min_free_space_gb: int = Field(
        default=64,
        ge=0,
        description="Free disk space that must remain on the cache volume",
    )

    max_age_days: int = Field(
        default=14,
        ge=0,
        description="Entries not accessed for this many days are removed",
    )

    copy_workers: int = Field(
        default=4,
        ge=1,
        description="Worker threads used to copy files into a new entry",
    )

    @field_validator("cache_root_path", mode="before")
    @classmethod
    def expand_cache_root(cls, v: str | Path | None) -> Path | None:
        """Expand and resolve the cache root path."""
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return Path(v).expanduser().resolve()
