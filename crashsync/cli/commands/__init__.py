"""CLI command modules."""

import typer

from crashsync.cli.commands.cache import register_cache_commands
from crashsync.cli.commands.sync import register_commands as register_sync_commands


def register_all_commands(app: typer.Typer) -> None:
    """Register all CLI commands with the main app.

    Args:
        app: The main Typer app
    """
    register_sync_commands(app)
    register_cache_commands(app)
