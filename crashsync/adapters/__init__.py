"""Adapters for external systems."""

from .perforce_adapter import (
    PerforceError,
    PerforceLabel,
    PerforceProvider,
    PerforceRevision,
    create_source_control_provider,
)


__all__ = [
    "PerforceError",
    "PerforceLabel",
    "PerforceProvider",
    "PerforceRevision",
    "create_source_control_provider",
]
