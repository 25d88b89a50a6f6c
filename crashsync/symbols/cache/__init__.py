"""Label-keyed on-disk cache of symbol artifacts."""

from .models import (
    TIMESTAMP_FILENAME,
    CacheEntry,
    CleanupReport,
    bytes_to_gb,
    clean_label_name,
)
from .symbol_cache_store import (
    SymbolCacheStore,
    create_symbol_cache_store,
    disk_free_bytes,
)


__all__ = [
    "TIMESTAMP_FILENAME",
    "CacheEntry",
    "CleanupReport",
    "SymbolCacheStore",
    "bytes_to_gb",
    "clean_label_name",
    "create_symbol_cache_store",
    "disk_free_bytes",
]
