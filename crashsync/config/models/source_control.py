"""Source control and symbol store configuration models."""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator, model_validator


CHANGELIST_PLACEHOLDER = "%CHANGELISTNUMBER%"


class DistributionLayout(BaseModel):
    """Where a distribution layout keeps its binaries and symbols.

    Both directories are relative to the depot root; an empty string means
    the module path is used as-is.
    """

    name: str
    binary_dir: str = ""
    symbol_dir: str = ""

    @field_validator("binary_dir", "symbol_dir")
    @classmethod
    def normalize_dir(cls, v: str) -> str:
        return v.replace("\\", "/").strip("/")


def _default_layouts() -> list[DistributionLayout]:
    return [
        DistributionLayout(name="primary"),
        DistributionLayout(
            name="installed",
            binary_dir="Rocket/Installed/Windows",
            symbol_dir="Rocket/Symbols",
        ),
        DistributionLayout(
            name="launcher",
            binary_dir="Rocket/LauncherInstalled/Windows/Launcher",
            symbol_dir="Rocket/LauncherSymbols/Windows/Launcher",
        ),
    ]


class SourceControlConfig(BaseModel):
    """Configuration for resolving labels and syncing debug artifacts."""

    provider: Literal["perforce"] = Field(
        default="perforce", description="Source control provider"
    )

    p4_executable: str = Field(default="p4", description="Path to the p4 client")
    p4_port: str | None = Field(default=None, description="P4PORT override")
    p4_user: str | None = Field(default=None, description="P4USER override")
    p4_client: str | None = Field(default=None, description="P4CLIENT override")

    depot_root: str | None = Field(
        default=None,
        description="Depot path of the branch, e.g. '//depot/UE4'",
    )

    branch_name: str | None = Field(
        default=None,
        description="Branch name used to derive depot_root as '//depot/<branch>'",
    )

    label_pattern: str | None = Field(
        default=None,
        description=f"Label name template containing {CHANGELIST_PLACEHOLDER}",
    )

    local_symbol_store_path: Path | None = Field(
        default=None,
        description="Directory that platform-wide symbol fetches are staged into",
    )

    workspace_root: Path | None = Field(
        default=None,
        description="Local directory the depot root is mapped to by the client workspace",
    )

    binary_roots: list[str] = Field(
        default_factory=lambda: ["Engine", "...Game"],
        description="Install roots below the depot root that contain Binaries/<platform>",
    )

    distribution_layouts: list[DistributionLayout] = Field(
        default_factory=_default_layouts,
        description="Alternate locations searched when syncing individual modules",
    )

    excluded_label_tokens: list[str] = Field(
        default_factory=lambda: ["Mac"],
        description="Labels containing any of these tokens are skipped for module syncs",
    )

    changelist_labels: dict[int, str] = Field(
        default_factory=dict,
        description="Known labels by changelist, consulted before the label pattern",
    )

    engine_version_labels: dict[int, str] = Field(
        default_factory=dict,
        description="Known labels by engine version",
    )

    @field_validator("depot_root", "branch_name")
    @classmethod
    def normalize_depot_path(cls, v: str | None) -> str | None:
        # ini-style files write '//' as '\\' to dodge comment parsing
        if v is None:
            return None
        v = v.replace("\\", "/").rstrip("/")
        return v or None

    @field_validator("local_symbol_store_path", "workspace_root", mode="before")
    @classmethod
    def expand_path(cls, v: str | Path | None) -> Path | None:
        if v is None or (isinstance(v, str) and not v.strip()):
            return None
        return Path(v).expanduser().resolve()

    @model_validator(mode="after")
    def derive_depot_root(self) -> "SourceControlConfig":
        if self.depot_root is None and self.branch_name:
            self.depot_root = f"//depot/{self.branch_name.strip('/')}"
        return self
