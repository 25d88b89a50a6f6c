"""Crash sync service tying label resolution, syncing and caching together."""

import logging
from collections.abc import Callable
from pathlib import Path

from crashsync.adapters import create_source_control_provider
from crashsync.config.models import SourceControlConfig, SymbolCacheConfig
from crashsync.config.user_config import UserConfig
from crashsync.core.errors import SymbolCacheError
from crashsync.models.crash import CrashInfo
from crashsync.models.results import (
    ArtifactFetchResult,
    CrashSyncResult,
    CrashSyncStatus,
    FetchStatus,
)
from crashsync.protocols import SourceControlProviderProtocol
from crashsync.symbols.artifact_syncer import ArtifactSyncer, create_artifact_syncer
from crashsync.symbols.cache import SymbolCacheStore, create_symbol_cache_store
from crashsync.symbols.label_resolver import LabelResolver, create_label_resolver


logger = logging.getLogger(__name__)

_FETCH_FAILURE_STATUS = {
    FetchStatus.UNAVAILABLE: CrashSyncStatus.UNAVAILABLE,
    FetchStatus.INVALID: CrashSyncStatus.INVALID,
    FetchStatus.NOT_FOUND: CrashSyncStatus.SYNC_FAILED,
}


class CrashSyncService:
    """Gets the debug artifacts of a crashed build onto local disk.

    Each request resolves a label, serves it from the symbol cache when
    possible and otherwise fetches it from source control and caches the
    result. Failures are reported through ``CrashSyncResult``; only a
    broken cache invariant raises.
    """

    def __init__(
        self,
        symbol_cache_config: SymbolCacheConfig,
        source_control_config: SourceControlConfig,
        provider: SourceControlProviderProtocol,
        cache_store: SymbolCacheStore | None = None,
        label_resolver: LabelResolver | None = None,
        artifact_syncer: ArtifactSyncer | None = None,
    ) -> None:
        """Initialize the service with its collaborators.

        Args:
            symbol_cache_config: Symbol cache configuration
            source_control_config: Source control configuration
            provider: Source control backend
            cache_store: Symbol cache, created from the config if omitted
            label_resolver: Label resolver, created from the provider if omitted
            artifact_syncer: Artifact syncer, created from the provider if omitted
        """
        self.source_control_config = source_control_config
        self.provider = provider
        self.cache_store = cache_store or create_symbol_cache_store(symbol_cache_config)
        self.label_resolver = label_resolver or create_label_resolver(
            provider, source_control_config
        )
        self.artifact_syncer = artifact_syncer or create_artifact_syncer(
            provider, source_control_config
        )
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    def initialize(self) -> bool:
        """Initialize the symbol cache and check the local symbol store.

        Returns:
            False if crash handling is disabled
        """
        self.cache_store.initialize()

        if self.source_control_config.local_symbol_store_path is None:
            logger.warning(
                "Failed to get source_control.local_symbol_store_path... crash handling disabled"
            )
            self._initialized = False
            return False

        self._initialized = True
        return True

    def init_source_control(self) -> bool:
        """Check that the source control backend can be reached."""
        if not self.provider.is_available():
            logger.warning("Source control is not available")
            return False
        return True

    def resolve_label(self, engine_version: int, changelist: int) -> str:
        """Resolve a build to its label, returning '' if none was found."""
        return self.label_resolver.resolve_label(engine_version, changelist)

    def sync_modules(self, crash_info: CrashInfo) -> CrashSyncResult:
        """Sync the binaries and symbols of the modules in a crash."""
        if not self._initialized:
            return self._not_initialized(crash_info.label_name)

        label = crash_info.label_name or self.resolve_label(
            crash_info.engine_version, crash_info.changelist
        )
        if not label:
            return CrashSyncResult(
                success=False,
                status=CrashSyncStatus.NO_LABEL,
                error_message="Could not determine the build label of the crash",
            )
        if not crash_info.module_names:
            return CrashSyncResult(
                success=False,
                status=CrashSyncStatus.INVALID,
                label=label,
                error_message="The crash lists no modules to sync",
            )

        return self._sync_with_cache(
            label,
            lambda: self.artifact_syncer.fetch_modules_for_label(
                label, crash_info.module_names
            ),
        )

    def sync_required_files_from_label(
        self, label: str, platform: str
    ) -> CrashSyncResult:
        """Sync every binary and symbol of a platform at a label."""
        if not self._initialized:
            return self._not_initialized(label)
        if not label:
            return CrashSyncResult(
                success=False,
                status=CrashSyncStatus.NO_LABEL,
                error_message="No label given",
            )

        return self._sync_with_cache(
            label, lambda: self.artifact_syncer.fetch_by_label(label, platform)
        )

    def sync_required_files_from_changelist(
        self, changelist: int, platform: str
    ) -> CrashSyncResult:
        """Resolve a changelist to its label and sync that label."""
        if not self._initialized:
            return self._not_initialized()

        label = self.resolve_label(-1, changelist)
        if not label:
            return CrashSyncResult(
                success=False,
                status=CrashSyncStatus.NO_LABEL,
                error_message=f"No label found for changelist {changelist}",
            )
        return self.sync_required_files_from_label(label, platform)

    def sync_source_file(self, crash_info: CrashInfo) -> bool:
        """Sync the source file of the crash site at the crash's label."""
        if not self._initialized:
            logger.warning("Crash handling is disabled, not syncing source file")
            return False

        label = crash_info.label_name or self.resolve_label(
            crash_info.engine_version, crash_info.changelist
        )
        if not label:
            logger.warning("Cannot sync source file without a label")
            return False
        return self.artifact_syncer.fetch_source_file(label, crash_info.source_file)

    def _sync_with_cache(
        self, label: str, fetch: Callable[[], ArtifactFetchResult]
    ) -> CrashSyncResult:
        entry = self.cache_store.lookup(label)
        if entry is not None:
            self.cache_store.touch(label)
            logger.info("Using cached symbols for %s from %s", label, entry.directory)
            return CrashSyncResult(
                success=True,
                status=CrashSyncStatus.CACHED,
                label=label,
                entry=entry,
                staged_files=entry.files,
            )

        fetch_result = fetch()
        if not fetch_result.success:
            return CrashSyncResult(
                success=False,
                status=_FETCH_FAILURE_STATUS.get(
                    FetchStatus(fetch_result.status), CrashSyncStatus.SYNC_FAILED
                ),
                label=label,
                error_message=fetch_result.error_message,
            )

        if not fetch_result.staged_files:
            return CrashSyncResult(
                success=False,
                status=CrashSyncStatus.SYNC_FAILED,
                label=label,
                error_message=f"No files were synced for {label}",
            )

        if not self.cache_store.enabled:
            return CrashSyncResult(
                success=True,
                status=CrashSyncStatus.UNCACHED,
                label=label,
                staged_files=fetch_result.staged_files,
            )

        remote_root = fetch_result.staging_root or Path.cwd()
        try:
            entry = self.cache_store.create_entry(
                label, remote_root, fetch_result.staged_files
            )
        except SymbolCacheError as e:
            logger.error("Failed to cache symbols for %s: %s", label, e)
            return CrashSyncResult(
                success=True,
                status=CrashSyncStatus.UNCACHED,
                label=label,
                staged_files=fetch_result.staged_files,
                error_message=str(e),
            )

        return CrashSyncResult(
            success=True,
            status=CrashSyncStatus.FRESH if entry else CrashSyncStatus.UNCACHED,
            label=label,
            entry=entry,
            staged_files=fetch_result.staged_files,
        )

    @staticmethod
    def _not_initialized(label: str = "") -> CrashSyncResult:
        return CrashSyncResult(
            success=False,
            status=CrashSyncStatus.NOT_INITIALIZED,
            label=label,
            error_message="Crash handling is disabled; check source_control.local_symbol_store_path",
        )


def create_crash_sync_service(
    user_config: UserConfig,
    provider: SourceControlProviderProtocol | None = None,
) -> CrashSyncService:
    """Factory function to create a crash sync service from user configuration.

    Args:
        user_config: Loaded user configuration
        provider: Source control backend, Perforce from the config if omitted
    """
    source_control_config = user_config.source_control
    return CrashSyncService(
        symbol_cache_config=user_config.symbol_cache,
        source_control_config=source_control_config,
        provider=provider or create_source_control_provider(source_control_config),
    )
