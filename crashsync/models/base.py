"""Base model for all crashsync Pydantic models."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class CrashSyncBaseModel(BaseModel):
    """Base model class for all crashsync Pydantic models.

    ``to_dict_full`` uses aliases and JSON-compatible types so
    paths and datetimes render the same way in CLI output and logs.
    """

    model_config = ConfigDict(
        extra="allow",
        str_strip_whitespace=True,
        use_enum_values=True,
        validate_assignment=True,
    )

    def to_dict_full(self) -> dict[str, Any]:
        """Convert model to dictionary including all fields (even unset ones)."""
        return self.model_dump(by_alias=True, exclude_unset=False, mode="json")
