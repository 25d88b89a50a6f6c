"""Crash record data consumed by the sync service."""

from typing import Annotated

from pydantic import Field

from crashsync.models.base import CrashSyncBaseModel


class CrashInfo(CrashSyncBaseModel):
    """The parts of a crash record needed to sync its debug artifacts.

    Produced by the minidump processing layer; crashsync only reads it.
    """

    label_name: Annotated[
        str,
        Field(default="", description="Build label the crashing binaries came from"),
    ]

    changelist: Annotated[
        int,
        Field(default=-1, description="Changelist the build was made from, -1 if unknown"),
    ]

    engine_version: Annotated[
        int,
        Field(default=-1, description="Engine version of the build, -1 if unknown"),
    ]

    platform: Annotated[
        str, Field(default="Win64", description="Target platform (e.g. 'Win64')")
    ]

    module_names: Annotated[
        list[str],
        Field(
            default_factory=list,
            description="Branch-relative paths of the modules loaded by the crashing process",
        ),
    ]

    source_file: Annotated[
        str,
        Field(default="", description="Branch-relative source file of the crash site"),
    ]

    source_line_number: Annotated[
        int, Field(default=0, description="Line number of the crash site", ge=0)
    ]
