"""On-disk symbol cache with age and free-space based eviction."""

import logging
import os
import shutil
import sys
import threading
import time
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import datetime
from pathlib import Path

import psutil

from crashsync.config.models import SymbolCacheConfig
from crashsync.core.errors import CacheInvariantError, SymbolCacheError
from crashsync.symbols.cache.models import (
    TIMESTAMP_FILENAME,
    CacheEntry,
    CleanupReport,
    bytes_to_gb,
    clean_label_name,
    scan_entry_directory,
)


logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60

FreeSpaceProbe = Callable[[Path], int]


def disk_free_bytes(path: Path) -> int:
    """Return the free bytes on the volume holding ``path``."""
    return int(psutil.disk_usage(str(path)).free)


class SymbolCacheStore:
    """Cache of synced binaries and symbols, one directory per label.

    The directory layout under the cache root is the source of truth:
    entries are rebuilt from it on ``initialize()`` and each entry's
    last-access time lives in the mtime of its marker file. In memory the
    entries are kept ordered oldest first, which is the eviction order.

    While the cache is disabled every operation is a no-op: lookups miss,
    ``create_entry`` returns None and cleanup removes nothing.
    """

    def __init__(
        self,
        config: SymbolCacheConfig,
        free_space_probe: FreeSpaceProbe | None = None,
    ) -> None:
        """Initialize the store; nothing is read from disk until ``initialize()``.

        Args:
            config: Symbol cache configuration
            free_space_probe: Returns free bytes for a path, defaults to psutil
        """
        self.config = config
        self._free_space_probe = free_space_probe or disk_free_bytes
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.RLock()
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def cache_root(self) -> Path | None:
        return self.config.cache_root_path

    @property
    def entries(self) -> list[CacheEntry]:
        """Entries ordered by last access time, oldest first."""
        with self._lock:
            return list(self._entries.values())

    @property
    def cache_size_gb(self) -> int:
        with self._lock:
            return sum(entry.size_gb for entry in self._entries.values())

    def initialize(self, enforce_limits: bool = True) -> bool:
        """Load entries from disk and bring the cache within its limits.

        Args:
            enforce_limits: Run the free-space check and cleanup after loading

        Returns:
            True if the cache is enabled after initialization
        """
        with self._lock:
            self._entries.clear()
            self._enabled = self.config.enabled
            logger.info(
                "Symbol cache is %s", "enabled" if self._enabled else "disabled"
            )
            if not self._enabled:
                return False

            cache_root = self.cache_root
            if cache_root is None:
                logger.warning(
                    "symbol_cache.cache_root_path is not configured... symbol cache disabled"
                )
                self._enabled = False
                return False

            try:
                cache_root.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                logger.warning(
                    "Cannot create cache root %s: %s... symbol cache disabled",
                    cache_root,
                    e,
                )
                self._enabled = False
                return False

            self._load_entries(cache_root)
            if enforce_limits:
                self._enforce_limits(cache_root)

            if self._enabled:
                logger.info("cache_root_path=%s", cache_root)
                logger.info("max_cache_size_gb=%d", self.config.max_cache_size_gb)
                logger.info("min_free_space_gb=%d", self.config.min_free_space_gb)
                logger.info("max_age_days=%d", self.config.max_age_days)
            return self._enabled

    def _load_entries(self, cache_root: Path) -> None:
        start_time = time.perf_counter()

        for directory in sorted(p for p in cache_root.iterdir() if p.is_dir()):
            entry = self.read_entry(directory.name)
            self._entries[entry.label] = entry
        self._sort_entries()

        elapsed_ms = (time.perf_counter() - start_time) * 1000
        logger.info("Symbol cache initialized in %.2f ms", elapsed_ms)
        logger.info(
            "Found %d entries which occupy %d GB",
            len(self._entries),
            self.cache_size_gb,
        )

    def _enforce_limits(self, cache_root: Path) -> None:
        min_free_gb = self.config.min_free_space_gb
        current_gb = self.cache_size_gb
        target_gb = 0

        try:
            free_gb = self._free_space_probe(cache_root) >> 30
        except OSError as e:
            logger.warning("Could not measure free space on %s: %s", cache_root, e)
            free_gb = None

        if free_gb is not None and free_gb < min_free_gb:
            free_after_clean_gb = free_gb + current_gb
            if free_after_clean_gb < min_free_gb:
                logger.error("There is not enough free space. Symbol cache disabled.")
                logger.error("Current disk free space is %d GB.", free_gb)
                logger.error(
                    "To enable the symbol cache you need to free %d GB of space",
                    min_free_gb - free_after_clean_gb,
                )
                self.clear()
                self._enabled = False
                return
            target_gb = min_free_gb - free_gb

        max_size_gb = self.config.max_cache_size_gb
        if max_size_gb > 0 and current_gb > max_size_gb:
            logger.info(
                "Symbol cache uses %d GB, above the %d GB limit",
                current_gb,
                max_size_gb,
            )
            target_gb = max(target_gb, current_gb - max_size_gb)

        self.cleanup(self.config.max_age_days, target_gb)

    def _require_root(self) -> Path:
        if self.cache_root is None:
            raise SymbolCacheError("Symbol cache root is not configured")
        return self.cache_root

    def _entry_directory(self, label: str) -> Path:
        """Directory of an entry, which must be a direct child of the cache root.

        Raises:
            SymbolCacheError: If ``label`` does not name a single directory
        """
        root = self._require_root()
        directory = root / label
        if directory.resolve().parent != root.resolve():
            raise SymbolCacheError(
                f"Label {label!r} does not name a directory inside {root}"
            )
        return directory

    def _sort_entries(self) -> None:
        self._entries = dict(
            sorted(
                self._entries.items(),
                key=lambda item: (item[1].last_access_time, item[0]),
            )
        )

    def read_entry(self, label: str) -> CacheEntry:
        """Rebuild an entry from its directory under the cache root.

        A missing marker file maps to the epoch, so the entry sorts oldest
        and is removed by the next age pass.
        """
        directory = self._entry_directory(label)
        marker = directory / TIMESTAMP_FILENAME

        try:
            last_access_time = datetime.fromtimestamp(marker.stat().st_mtime)
        except OSError:
            logger.warning("Symbol cache entry %s has no timestamp file", label)
            last_access_time = datetime.fromtimestamp(0)

        files, total_bytes = scan_entry_directory(directory)
        return CacheEntry(
            label=label,
            directory=directory,
            files=files,
            size_gb=bytes_to_gb(total_bytes),
            last_access_time=last_access_time,
        )

    def lookup(self, label: str) -> CacheEntry | None:
        """Find the entry for a label without touching it."""
        with self._lock:
            if not self._enabled:
                return None
            return self._entries.get(clean_label_name(label))

    def contains(self, label: str) -> bool:
        return self.lookup(label) is not None

    def touch(self, label: str) -> None:
        """Mark an entry as used now, on disk and in memory.

        Raises:
            CacheInvariantError: If the label is not cached
        """
        with self._lock:
            if not self._enabled:
                return

            cleaned = clean_label_name(label)
            entry = self._entries.get(cleaned)
            if entry is None:
                raise CacheInvariantError(
                    f"Cannot touch symbol cache entry {cleaned}: it is not cached"
                )

            now = time.time()
            marker = entry.marker_path
            try:
                marker.touch(exist_ok=True)
                os.utime(marker, (now, now))
                now = marker.stat().st_mtime
            except OSError as e:
                logger.warning("Failed to update timestamp file %s: %s", marker, e)

            entry.last_access_time = datetime.fromtimestamp(now)
            self._sort_entries()

    def create_entry(
        self,
        original_label: str,
        remote_root: Path,
        staged_files: Iterable[Path],
    ) -> CacheEntry | None:
        """Copy staged files into a new entry for ``original_label``.

        Any existing entry for the label is deleted first, so the result
        depends only on the staged files. Paths keep their structure below
        ``remote_root``; files outside it are stored by name.

        Raises:
            SymbolCacheError: If the marker file cannot be written
        """
        with self._lock:
            if not self._enabled:
                logger.debug("Symbol cache disabled, not caching %s", original_label)
                return None

            label = clean_label_name(original_label)
            directory = self._entry_directory(label)

            if label in self._entries or directory.exists():
                logger.info("Replacing symbol cache entry %s", label)
                self._delete_directory(directory)
                self._entries.pop(label, None)

            marker = directory / TIMESTAMP_FILENAME
            try:
                directory.mkdir(parents=True, exist_ok=True)
                marker.write_text(str(marker), encoding="utf-8")
                last_access_time = datetime.fromtimestamp(marker.stat().st_mtime)
            except OSError as e:
                raise SymbolCacheError(
                    f"Couldn't save the timestamp file to {marker}: {e}"
                ) from e

            logger.info(
                "Symbol cache entry %s is being copied from %s, it will take some time",
                label,
                original_label,
            )
            copied = self._copy_files(directory, Path(remote_root), staged_files)
            if copied == 0:
                self._delete_directory(directory)
                raise SymbolCacheError(
                    f"None of the staged files for {label} could be copied, not caching it"
                )

            files, total_bytes = scan_entry_directory(directory)
            entry = CacheEntry(
                label=label,
                directory=directory,
                files=files,
                size_gb=bytes_to_gb(total_bytes),
                last_access_time=last_access_time,
            )
            self._entries[label] = entry
            self._sort_entries()

            logger.info(
                "Symbol cache entry %s created with %d files (%d copied), %d GB",
                label,
                entry.file_count,
                copied,
                entry.size_gb,
            )
            return entry

    def _copy_files(
        self, directory: Path, remote_root: Path, staged_files: Iterable[Path]
    ) -> int:
        sources = list(dict.fromkeys(Path(f) for f in staged_files))
        if not sources:
            return 0

        copied = 0
        max_workers = min(self.config.copy_workers, len(sources))
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            futures = [
                executor.submit(
                    self._copy_file, src, self._destination_for(directory, remote_root, src)
                )
                for src in sources
            ]
            for future in as_completed(futures):
                if future.result():
                    copied += 1
        return copied

    @staticmethod
    def _destination_for(directory: Path, remote_root: Path, source: Path) -> Path:
        try:
            relative = source.resolve().relative_to(remote_root.resolve())
        except ValueError:
            relative = Path(source.name)
        return directory / relative

    @staticmethod
    def _copy_file(source: Path, dest: Path) -> bool:
        try:
            dest.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source, dest)
        except OSError as e:
            logger.warning("Failed to copy %s to %s: %s", source, dest, e)
            return False
        return True

    def remove(self, label: str) -> bool:
        """Delete an entry's directory and forget it.

        Returns:
            False if the label is not cached
        """
        with self._lock:
            cleaned = clean_label_name(label)
            entry = self._entries.get(cleaned)
            if entry is None:
                logger.warning("Symbol cache entry %s not found", cleaned)
                return False

            start_time = time.perf_counter()
            self._delete_directory(entry.directory)
            del self._entries[cleaned]

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Symbol cache entry %s removed in %.2f ms, restored %d GB",
                cleaned,
                elapsed_ms,
                entry.size_gb,
            )
            return True

    def _delete_directory(self, directory: Path) -> None:
        if not directory.exists():
            return
        root = self._require_root().resolve()
        if directory.resolve().parent != root:
            logger.error("Refusing to delete %s, it is not inside %s", directory, root)
            return
        try:
            shutil.rmtree(directory)
        except OSError as e:
            logger.error("Failed to delete %s: %s", directory, e)

    def _marker_age_seconds(self, entry: CacheEntry) -> int:
        try:
            return int(time.time() - entry.marker_path.stat().st_mtime)
        except OSError:
            return sys.maxsize

    def cleanup(self, max_age_days: int, target_gb: int = 0) -> CleanupReport:
        """Evict entries by age, then by recency until ``target_gb`` is reclaimed.

        The age pass marks every entry whose marker is older than
        ``max_age_days``. If that reclaims less than ``target_gb``, the
        space pass marks further entries oldest first and stops as soon as
        the target is met. Marked entries are removed at the end.

        Args:
            max_age_days: Entries unused for longer than this are removed
            target_gb: Gigabytes to reclaim in total, 0 for the age pass only

        Returns:
            Report of the removed entries
        """
        with self._lock:
            report = CleanupReport()
            if not self._enabled:
                return report

            start_time = time.perf_counter()
            max_age_seconds = max_age_days * SECONDS_PER_DAY
            reclaimed_gb = 0

            for entry in self._entries.values():
                if self._marker_age_seconds(entry) > max_age_seconds:
                    report.age_removed.append(entry.label)
                    reclaimed_gb += entry.size_gb

            if target_gb > 0 and reclaimed_gb < target_gb:
                aged = set(report.age_removed)
                for entry in self._entries.values():
                    if entry.label in aged:
                        continue
                    report.space_removed.append(entry.label)
                    reclaimed_gb += entry.size_gb
                    if reclaimed_gb >= target_gb:
                        break

            for label in report.removed_labels:
                self.remove(label)
            report.reclaimed_gb = reclaimed_gb

            elapsed_ms = (time.perf_counter() - start_time) * 1000
            logger.info(
                "Symbol cache cleaned in %.2f ms: %d entries removed, %d GB reclaimed",
                elapsed_ms,
                len(report.removed_labels),
                reclaimed_gb,
            )
            if target_gb > 0 and reclaimed_gb < target_gb:
                logger.warning(
                    "Symbol cache reclaimed %d GB of the %d GB requested",
                    reclaimed_gb,
                    target_gb,
                )
            return report

    def clear(self) -> CleanupReport:
        """Remove every entry, regardless of age."""
        with self._lock:
            report = CleanupReport(
                space_removed=list(self._entries),
                reclaimed_gb=self.cache_size_gb,
            )
            for label in report.space_removed:
                self.remove(label)
            return report


def create_symbol_cache_store(
    config: SymbolCacheConfig, free_space_probe: FreeSpaceProbe | None = None
) -> SymbolCacheStore:
    """Factory function to create a symbol cache store."""
    return SymbolCacheStore(config, free_space_probe=free_space_probe)
