"""Models package for crashsync.

Result models live in ``crashsync.models.results``; they depend on the
cache entry model and are not re-exported here.
"""

from .base import CrashSyncBaseModel
from .crash import CrashInfo


__all__ = [
    "CrashInfo",
    "CrashSyncBaseModel",
]
