"""Core test fixtures for the crashsync project."""

import os
from collections.abc import Callable
from pathlib import Path

import pytest
import yaml
from typer.testing import CliRunner

from crashsync.config.models import SourceControlConfig, SymbolCacheConfig
from tests.fakes import DEPOT_ROOT, FakeLabel


# ---- Base Fixtures ----


@pytest.fixture(autouse=True)
def isolated_environment(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Keep user config files and CRASHSYNC_ variables out of every test."""
    for key in list(os.environ):
        if key.upper().startswith("CRASHSYNC_"):
            monkeypatch.delenv(key)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg_config"))
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def cli_runner() -> CliRunner:
    """Return a Typer CLI test runner."""
    return CliRunner()


@pytest.fixture
def cache_root(tmp_path: Path) -> Path:
    root = tmp_path / "symbol_cache"
    root.mkdir()
    return root


@pytest.fixture
def symbol_cache_config(cache_root: Path) -> SymbolCacheConfig:
    """Enabled cache config with small limits."""
    return SymbolCacheConfig(
        enabled=True,
        cache_root_path=cache_root,
        max_cache_size_gb=0,
        min_free_space_gb=10,
        max_age_days=14,
        copy_workers=2,
    )


@pytest.fixture
def workspace_root(tmp_path: Path) -> Path:
    return tmp_path / "workspace"


@pytest.fixture
def source_control_config(tmp_path: Path, workspace_root: Path) -> SourceControlConfig:
    return SourceControlConfig(
        depot_root=DEPOT_ROOT,
        label_pattern="UE4-CL-%CHANGELISTNUMBER%",
        local_symbol_store_path=tmp_path / "symbols",
        workspace_root=workspace_root,
    )


@pytest.fixture
def platform_label(workspace_root: Path) -> FakeLabel:
    """Label holding Win64 engine and game binaries plus unrelated files."""
    return FakeLabel(
        "UE4-CL-100",
        files={
            f"{DEPOT_ROOT}/Engine/Binaries/Win64/UE4Editor.exe": b"exe",
            f"{DEPOT_ROOT}/Engine/Binaries/Win64/UE4Editor.pdb": b"pdb",
            f"{DEPOT_ROOT}/Engine/Binaries/Win64/UE4Editor-Core.dll": b"dll",
            f"{DEPOT_ROOT}/ShooterGame/Binaries/Win64/ShooterGame.pdb": b"game-pdb",
            f"{DEPOT_ROOT}/Engine/Binaries/Linux/UE4Editor.sym": b"linux",
            f"{DEPOT_ROOT}/Engine/Source/Runtime/Core/Private/Main.cpp": b"source",
        },
        workspace_root=workspace_root,
    )


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[[dict], Path]:
    """Write a YAML config file and return its path."""

    def _write(data: dict) -> Path:
        path = tmp_path / "crashsync-test.yaml"
        with path.open("w") as f:
            yaml.safe_dump(data, f)
        return path

    return _write
