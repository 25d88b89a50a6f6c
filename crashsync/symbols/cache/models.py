"""Symbol cache models."""

import re
from datetime import datetime
from pathlib import Path
from typing import Annotated

from pydantic import Field

from crashsync.models.base import CrashSyncBaseModel


BYTES_PER_GB = 1 << 30

# Marker file whose mtime records when an entry was last used
TIMESTAMP_FILENAME = "PDBTimeStamp.txt"

_UNSAFE_LABEL_CHARS = re.compile(r'[/\\:*?"<>|\s]')

_LEADING_DOTS = re.compile(r"^\.+")


def clean_label_name(label: str) -> str:
    """Turn a label into a directory name.

    ``//depot/UE4-Releases/4.2/Rocket-CL-2082666`` becomes
    ``__depot_UE4-Releases_4.2_Rocket-CL-2082666``. Whitespace is replaced,
    not stripped, so distinct labels keep distinct names. Leading dots
    become underscores, which keeps ``.`` and ``..`` from naming the cache
    root or its parent; an empty label becomes ``_``. Cleaning a cleaned
    label returns it unchanged.
    """
    cleaned = _UNSAFE_LABEL_CHARS.sub("_", label)
    cleaned = _LEADING_DOTS.sub(lambda m: "_" * len(m.group()), cleaned)
    return cleaned or "_"


def bytes_to_gb(total_bytes: int) -> int:
    """Convert bytes to whole gigabytes, rounding up."""
    return -(-total_bytes // BYTES_PER_GB)


def scan_entry_directory(directory: Path) -> tuple[list[Path], int]:
    """Recursively list the files in an entry directory and sum their sizes."""
    files: list[Path] = []
    total_bytes = 0
    if not directory.is_dir():
        return files, total_bytes

    for path in sorted(directory.rglob("*")):
        try:
            if path.is_file():
                total_bytes += path.stat().st_size
                files.append(path.resolve())
        except OSError:
            # File vanished between listing and stat
            continue
    return files, total_bytes


class CacheEntry(CrashSyncBaseModel):
    """Artifacts cached for one label.

    Only ``last_access_time`` changes after creation; it mirrors the mtime
    of the entry's marker file, which is the durable record.
    """

    label: Annotated[
        str, Field(description="Cleaned label, also the entry directory name")
    ]

    directory: Annotated[
        Path, Field(description="Absolute path of the entry directory")
    ]

    files: Annotated[
        list[Path],
        Field(
            default_factory=list,
            description="Every file found in the entry directory by a recursive scan",
        ),
    ]

    size_gb: Annotated[
        int, Field(default=0, ge=0, description="Total size rounded up to whole GB")
    ]

    last_access_time: Annotated[
        datetime,
        Field(
            default_factory=datetime.now,
            description="Last time the entry was created or touched",
        ),
    ]

    @property
    def marker_path(self) -> Path:
        return self.directory / TIMESTAMP_FILENAME

    @property
    def age_seconds(self) -> float:
        return (datetime.now() - self.last_access_time).total_seconds()

    @property
    def file_count(self) -> int:
        return len(self.files)


class CleanupReport(CrashSyncBaseModel):
    """Entries removed by one cleanup pass."""

    age_removed: Annotated[list[str], Field(default_factory=list)]
    space_removed: Annotated[list[str], Field(default_factory=list)]
    reclaimed_gb: int = 0

    @property
    def removed_labels(self) -> list[str]:
        return self.age_removed + self.space_removed
