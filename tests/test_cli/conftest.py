"""CLI test fixtures."""

import logging
from collections.abc import Callable, Generator
from pathlib import Path

import pytest
import structlog
import typer

from crashsync.cli.app import app
from crashsync.cli.commands import register_all_commands


_registered = False


@pytest.fixture(autouse=True)
def restore_root_logger() -> Generator[None, None, None]:
    """Drop the handlers the CLI callback installs and restore the root level."""
    root_logger = logging.getLogger()
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if isinstance(handler.formatter, structlog.stdlib.ProcessorFormatter):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)


@pytest.fixture
def cli_app() -> typer.Typer:
    """Return the main app with every command registered once."""
    global _registered
    if not _registered:
        register_all_commands(app)
        _registered = True
    return app


@pytest.fixture
def cache_config_file(
    write_config: Callable[[dict], Path], cache_root: Path
) -> Path:
    return write_config(
        {"symbol_cache": {"enabled": True, "cache_root_path": str(cache_root)}}
    )
