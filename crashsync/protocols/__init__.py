"""Protocol definitions for crashsync adapters and interfaces.

These protocols use Python's typing.Protocol system with the
@runtime_checkable decorator to enable both static type checking and
runtime isinstance() checks.
"""

from .source_control_protocol import (
    SourceControlLabelProtocol,
    SourceControlProviderProtocol,
    SourceControlRevisionProtocol,
)


__all__ = [
    "SourceControlLabelProtocol",
    "SourceControlProviderProtocol",
    "SourceControlRevisionProtocol",
]
