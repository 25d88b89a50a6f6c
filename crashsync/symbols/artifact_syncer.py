"""Fetch binaries and symbols for a label from source control."""

import logging
from collections.abc import Sequence
from pathlib import Path

from crashsync.config.models import SourceControlConfig
from crashsync.core.errors import ConfigError, SourceControlError
from crashsync.models.results import ArtifactFetchResult, FetchStatus
from crashsync.protocols import (
    SourceControlLabelProtocol,
    SourceControlProviderProtocol,
)


logger = logging.getLogger(__name__)

# File kinds fetched for a whole platform
PLATFORM_FILE_KINDS = ("pdb", "exe", "dll")

# Binary extensions widened with a wildcard so decorated builds also match
DECORATED_EXTENSIONS = (".dll", ".exe")

SYMBOL_EXTENSION = ".pdb"


class ArtifactSyncer:
    """Stages the artifacts pinned by a label on local disk.

    Two strategies are supported. ``fetch_by_label`` prints every binary
    and symbol under the platform's binary directories into the local
    symbol store. ``fetch_modules_for_label`` syncs only the named modules
    into the client workspace, trying each distribution layout in turn.
    """

    def __init__(
        self,
        provider: SourceControlProviderProtocol,
        config: SourceControlConfig,
    ) -> None:
        self.provider = provider
        self.config = config

    @property
    def depot_root(self) -> str:
        if not self.config.depot_root:
            raise ConfigError(
                "source_control.depot_root (or branch_name) is not configured"
            )
        return self.config.depot_root

    def depot_relative(self, depot_path: str) -> str:
        """Return a depot path relative to the depot root.

        Paths outside the depot root lose only their leading slashes.
        """
        depot_path = depot_path.replace("\\", "/").rstrip("/")
        if depot_path.lower() == self.depot_root.lower():
            return ""
        prefix = self.depot_root + "/"
        if depot_path.lower().startswith(prefix.lower()):
            return depot_path[len(prefix) :]
        return depot_path.lstrip("/")

    def depot_to_local(self, depot_path: str) -> Path:
        """Map a depot path to its location in the client workspace.

        Raises:
            ConfigError: If the workspace root or depot root is not configured
        """
        if self.config.workspace_root is None:
            raise ConfigError("source_control.workspace_root is not configured")
        return self.config.workspace_root / self.depot_relative(depot_path)

    def build_platform_patterns(self, platform: str) -> list[str]:
        """Depot patterns for every binary and symbol of a platform.

        For example ``//depot/UE4/Engine/Binaries/Win64/...pdb...``.
        """
        patterns = []
        for root in self.config.binary_roots:
            binaries_dir = f"{self.depot_root}/{root.strip('/')}/Binaries/{platform}"
            for kind in PLATFORM_FILE_KINDS:
                patterns.append(f"{binaries_dir}/...{kind}...")
        return patterns

    def _first_label(self, label: str) -> SourceControlLabelProtocol | None:
        labels = self.provider.get_labels(label)
        if not labels:
            logger.warning("Could not find label: %s", label)
            return None
        if len(labels) > 1:
            logger.warning(
                "Found %d labels matching %s, using %s",
                len(labels),
                label,
                labels[0].name,
            )
        return labels[0]

    def fetch_by_label(self, label: str, platform: str) -> ArtifactFetchResult:
        """Print every binary and symbol of a platform at a label.

        Files are staged under ``<local_symbol_store_path>/<platform>`` with
        their depot structure below the depot root.
        """
        if not label or not platform:
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.INVALID,
                label=label,
                error_message="A label and a platform are required",
            )
        if self.config.local_symbol_store_path is None:
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.INVALID,
                label=label,
                error_message="source_control.local_symbol_store_path is not configured",
            )

        staging_root = self.config.local_symbol_store_path / platform
        staged_files: list[Path] = []

        try:
            patterns = self.build_platform_patterns(platform)
            source_label = self._first_label(label)
            if source_label is None:
                return ArtifactFetchResult(
                    success=False,
                    status=FetchStatus.NOT_FOUND,
                    label=label,
                    error_message=f"Label not found: {label}",
                )

            for pattern in patterns:
                revisions = source_label.get_file_revisions(pattern)
                logger.info("Found %d files matching %s", len(revisions), pattern)
                for revision in revisions:
                    dest = staging_root / self.depot_relative(revision.filename)
                    if revision.get(dest):
                        staged_files.append(dest)
                    else:
                        logger.warning(
                            "Failed to get %s#%d", revision.filename, revision.revision
                        )
        except ConfigError as e:
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.INVALID,
                label=label,
                error_message=str(e),
            )
        except SourceControlError as e:
            logger.error("Source control failed while fetching %s: %s", label, e)
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.UNAVAILABLE,
                label=label,
                staging_root=staging_root,
                staged_files=staged_files,
                error_message=str(e),
            )

        if not staged_files:
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.NOT_FOUND,
                label=label,
                staging_root=staging_root,
                error_message=f"No {platform} files found at label {label}",
            )

        logger.info("Staged %d files for %s in %s", len(staged_files), label, staging_root)
        return ArtifactFetchResult(
            success=True,
            label=label,
            staging_root=staging_root,
            staged_files=staged_files,
        )

    def build_module_sync_paths(self, module_name: str) -> list[tuple[str, str]]:
        """Binary and symbol depot patterns for a module, one pair per layout.

        ``Engine/Binaries/Win64/UE4Editor-Core.dll`` in the primary layout
        gives ``(<depot>/Engine/Binaries/Win64/UE4Editor-Core*.dll,
        <depot>/Engine/Binaries/Win64/UE4Editor-Core*.pdb)``.
        """
        module_path = module_name.replace("\\", "/").strip("/")
        stem, suffix = _split_extension(module_path)
        if suffix.lower() in DECORATED_EXTENSIONS:
            binary = f"{stem}*{suffix}"
            symbol = f"{stem}*{SYMBOL_EXTENSION}"
        else:
            binary = module_path
            symbol = f"{stem}{SYMBOL_EXTENSION}"

        paths = []
        for layout in self.config.distribution_layouts:
            binary_dir = layout.binary_dir
            symbol_dir = layout.symbol_dir or binary_dir
            paths.append(
                (
                    _join_depot(self.depot_root, binary_dir, binary),
                    _join_depot(self.depot_root, symbol_dir, symbol),
                )
            )
        return paths

    def _is_excluded(self, label_name: str) -> bool:
        return any(token in label_name for token in self.config.excluded_label_tokens)

    def fetch_modules_for_label(
        self, label: str, module_names: Sequence[str]
    ) -> ArtifactFetchResult:
        """Sync the binaries and symbols of individual modules.

        Every non-excluded label matching ``label`` triggers the syncs, but
        file content always comes from the first matching label. Patterns
        that sync nothing are not errors, so a successful result may stage
        no files.
        """
        if not label:
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.INVALID,
                label=label,
                error_message="A label is required",
            )

        try:
            workspace_root = self.depot_to_local(self.depot_root)
            labels = self.provider.get_labels(label)
            if not labels:
                logger.warning("Could not find label: %s", label)
                return ArtifactFetchResult(
                    success=False,
                    status=FetchStatus.NOT_FOUND,
                    label=label,
                    error_message=f"Label not found: {label}",
                )

            source_label = labels[0]
            synced_patterns: list[str] = []
            for candidate in labels:
                if self._is_excluded(candidate.name):
                    logger.info(
                        "Skipping label %s when syncing modules", candidate.name
                    )
                    continue

                logger.info("Syncing modules with label %s", candidate.name)
                for module_name in module_names:
                    for binary, symbol in self.build_module_sync_paths(module_name):
                        if source_label.sync(binary):
                            logger.info(" ... synced binary %s", binary)
                            synced_patterns.append(binary)
                        if source_label.sync(symbol):
                            logger.info(" ... synced symbol %s", symbol)
                            synced_patterns.append(symbol)

            staged_files = self._find_synced_files(synced_patterns)
        except ConfigError as e:
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.INVALID,
                label=label,
                error_message=str(e),
            )
        except SourceControlError as e:
            logger.error("Source control failed while syncing %s: %s", label, e)
            return ArtifactFetchResult(
                success=False,
                status=FetchStatus.UNAVAILABLE,
                label=label,
                error_message=str(e),
            )

        logger.info("Synced %d module files for %s", len(staged_files), label)
        return ArtifactFetchResult(
            success=True,
            label=label,
            staging_root=workspace_root,
            staged_files=staged_files,
        )

    def _find_synced_files(self, depot_patterns: Sequence[str]) -> list[Path]:
        workspace_root = self.depot_to_local(self.depot_root)
        found: dict[Path, None] = {}
        for pattern in dict.fromkeys(depot_patterns):
            relative = self.depot_relative(pattern)
            for path in sorted(workspace_root.glob(relative)):
                if path.is_file():
                    found[path] = None
        return list(found)

    def fetch_source_file(self, label: str, source_file: str) -> bool:
        """Sync one source file at a label into the client workspace."""
        if not label or not source_file:
            logger.warning("A label and a source file are required")
            return False

        try:
            depot_path = _join_depot(self.depot_root, "", source_file.replace("\\", "/"))
            source_label = self._first_label(label)
            if source_label is None:
                return False
            if not source_label.sync(depot_path):
                logger.warning("Failed to sync source file %s", depot_path)
                return False
        except (ConfigError, SourceControlError) as e:
            logger.error("Failed to sync source file %s: %s", source_file, e)
            return False

        logger.info(" ... synced source file %s", depot_path)
        return True


def _split_extension(path: str) -> tuple[str, str]:
    name_start = path.rfind("/") + 1
    dot = path.rfind(".")
    if dot <= name_start:
        return path, ""
    return path[:dot], path[dot:]


def _join_depot(depot_root: str, directory: str, relative: str) -> str:
    parts = [depot_root] + [p.strip("/") for p in (directory, relative) if p.strip("/")]
    return "/".join(parts)


def create_artifact_syncer(
    provider: SourceControlProviderProtocol, config: SourceControlConfig
) -> ArtifactSyncer:
    """Factory function to create an artifact syncer."""
    return ArtifactSyncer(provider, config)
