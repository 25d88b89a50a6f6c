"""Protocol definitions for source control operations."""

from pathlib import Path
from typing import Protocol, runtime_checkable


@runtime_checkable
class SourceControlRevisionProtocol(Protocol):
    """A single file revision pinned by a label."""

    @property
    def filename(self) -> str:
        """Depot path of the file."""
        ...

    @property
    def revision(self) -> int:
        """Revision number of the file."""
        ...

    def get(self, dest_path: Path) -> bool:
        """Write the contents of this revision to a local file.

        Args:
            dest_path: Local file to create; parent directories are created

        Returns:
            True if the file was written
        """
        ...


@runtime_checkable
class SourceControlLabelProtocol(Protocol):
    """A named, immutable snapshot of file revisions."""

    @property
    def name(self) -> str:
        """Label name."""
        ...

    def sync(self, path_pattern: str) -> bool:
        """Sync files matching a depot pattern to this label in the workspace.

        Returns:
            True if at least the sync command succeeded for the pattern
        """
        ...

    def get_file_revisions(
        self, path_pattern: str
    ) -> list[SourceControlRevisionProtocol]:
        """List the file revisions pinned by this label that match a pattern.

        Returns:
            Matching revisions; empty if nothing matches

        Raises:
            SourceControlError: If the server could not be queried
        """
        ...


@runtime_checkable
class SourceControlProviderProtocol(Protocol):
    """Protocol for a source control backend."""

    def is_available(self) -> bool:
        """Check whether the backend can be reached.

        Returns:
            True if commands can be issued, False otherwise
        """
        ...

    def get_labels(self, name: str) -> list[SourceControlLabelProtocol]:
        """Find labels by name; the name may contain backend wildcards.

        Returns:
            Matching labels in the order the backend reports them

        Raises:
            SourceControlError: If the server could not be queried
        """
        ...
