"""Source control fakes and cache helpers shared by the tests."""

import os
import re
import time
from collections.abc import Callable
from pathlib import Path

from crashsync.core.errors import SourceControlError
from crashsync.symbols.cache import TIMESTAMP_FILENAME


GB = 1 << 30

DEPOT_ROOT = "//depot/UE4"


# ---- Source control fakes ----


def p4_match(pattern: str, depot_path: str) -> bool:
    """Match a depot path against a p4 wildcard pattern ('...' and '*')."""
    regex = re.escape(pattern).replace(r"\.\.\.", ".*").replace(r"\*", "[^/]*")
    return re.fullmatch(regex, depot_path) is not None


class FakeRevision:
    """In-memory file revision."""

    def __init__(self, filename: str, content: bytes, revision: int = 1, fail: bool = False):
        self._filename = filename
        self._revision = revision
        self.content = content
        self.fail = fail
        self.get_calls: list[Path] = []

    @property
    def filename(self) -> str:
        return self._filename

    @property
    def revision(self) -> int:
        return self._revision

    def get(self, dest_path: Path) -> bool:
        self.get_calls.append(dest_path)
        if self.fail:
            return False
        dest_path.parent.mkdir(parents=True, exist_ok=True)
        dest_path.write_bytes(self.content)
        return True


class FakeLabel:
    """Label pinning a set of depot files held in memory.

    ``sync`` writes matching files below ``workspace_root`` the way a
    client workspace mapping ``depot_root`` there would.
    """

    def __init__(
        self,
        name: str,
        files: dict[str, bytes] | None = None,
        workspace_root: Path | None = None,
        depot_root: str = DEPOT_ROOT,
        failing_files: set[str] | None = None,
    ):
        self._name = name
        self.files = files or {}
        self.workspace_root = workspace_root
        self.depot_root = depot_root
        self.failing_files = failing_files or set()
        self.sync_calls: list[str] = []
        self.revision_queries: list[str] = []

    @property
    def name(self) -> str:
        return self._name

    def _matching(self, path_pattern: str) -> list[str]:
        return sorted(p for p in self.files if p4_match(path_pattern, p))

    def sync(self, path_pattern: str) -> bool:
        self.sync_calls.append(path_pattern)
        matches = self._matching(path_pattern)
        if not matches or self.workspace_root is None:
            return False
        for depot_path in matches:
            relative = depot_path[len(self.depot_root) + 1 :]
            local = self.workspace_root / relative
            local.parent.mkdir(parents=True, exist_ok=True)
            local.write_bytes(self.files[depot_path])
        return True

    def get_file_revisions(self, path_pattern: str) -> list[FakeRevision]:
        self.revision_queries.append(path_pattern)
        return [
            FakeRevision(p, self.files[p], fail=p in self.failing_files)
            for p in self._matching(path_pattern)
        ]


class FakeProvider:
    """Source control provider backed by a list of FakeLabels."""

    def __init__(
        self,
        labels: list[FakeLabel] | None = None,
        available: bool = True,
        error: str | None = None,
    ):
        self.labels = labels or []
        self.available = available
        self.error = error
        self.label_queries: list[str] = []

    def is_available(self) -> bool:
        return self.available

    def get_labels(self, name: str) -> list[FakeLabel]:
        self.label_queries.append(name)
        if self.error:
            raise SourceControlError(self.error)
        return [label for label in self.labels if p4_match(name, label.name)]


# ---- Cache helpers ----


def make_cache_entry(
    cache_root: Path,
    label: str,
    size_bytes: int = 1024,
    age_days: float = 0,
    with_marker: bool = True,
) -> Path:
    """Lay out a cache entry on disk with a sparse payload file.

    The payload is sized so the entry, marker included, totals
    ``size_bytes`` whenever the marker fits inside it.

    Returns:
        The entry directory
    """
    directory = cache_root / label
    payload = directory / "Engine" / "Binaries" / "Win64" / f"{label}.pdb"
    payload.parent.mkdir(parents=True, exist_ok=True)

    marker_bytes = 0
    if with_marker:
        marker = directory / TIMESTAMP_FILENAME
        marker.write_text(str(marker))
        marker_bytes = marker.stat().st_size
        timestamp = time.time() - age_days * 86400
        os.utime(marker, (timestamp, timestamp))

    payload.touch()
    os.truncate(payload, max(size_bytes - marker_bytes, 0))
    return directory


def free_space_probe(free_gb: int) -> Callable[[Path], int]:
    """Free space probe reporting a fixed number of gigabytes."""

    def probe(path: Path) -> int:
        return free_gb * GB

    return probe
