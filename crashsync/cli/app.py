"""Main CLI application for crashsync."""

import logging
import sys

# Import version from package metadata directly to avoid circular imports
from importlib.metadata import distribution
from typing import Annotated

import typer

from crashsync.cli.decorators.error_handling import print_stack_trace_if_verbose
from crashsync.config.user_config import create_user_config
from crashsync.core.logging import setup_logging


__all__ = ["app", "main", "__version__", "AppContext"]


__version__ = distribution("crashsync").version

logger = logging.getLogger(__name__)


class AppContext:
    """Application context for storing shared state."""

    def __init__(
        self,
        verbose: int = 0,
        log_file: str | None = None,
        config_file: str | None = None,
    ):
        """Initialize AppContext.

        Args:
            verbose: Verbosity level
            log_file: Path to log file
            config_file: Path to configuration file
        """
        self.verbose = verbose
        self.log_file = log_file
        self.config_file = config_file
        self.user_config = create_user_config(cli_config_path=config_file)


app = typer.Typer(
    name="crashsync",
    help=f"""crashsync symbol sync tool v{__version__}

Fetches the binaries and debug symbols of a labeled build from source
control and keeps them in a local cache for offline crash analysis.

Common workflows:
  • Resolve a build:    crashsync resolve --changelist 2082666
  • Sync a platform:    crashsync sync changelist 2082666 --platform Win64
  • Sync crash modules: crashsync sync modules --label Release-CL-2082666 -m Engine/Binaries/Win64/UE4Editor-Core.dll
  • Inspect the cache:  crashsync cache list""",
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    verbose: Annotated[
        int,
        typer.Option(
            "-v",
            "--verbose",
            count=True,
            help="Increase verbosity (-v=INFO, -vv=DEBUG)",
        ),
    ] = 0,
    debug: Annotated[
        bool,
        typer.Option("--debug", help="Enable debug logging (equivalent to -vv)"),
    ] = False,
    log_file: Annotated[
        str | None, typer.Option("--log-file", help="Log to file")
    ] = None,
    config_file: Annotated[
        str | None,
        typer.Option("-c", "--config", help="Path to configuration file"),
    ] = None,
    version: Annotated[
        bool, typer.Option("--version", help="Show version and exit")
    ] = False,
) -> None:
    """crashsync symbol sync tool."""
    if version:
        print(f"crashsync v{__version__}")
        raise typer.Exit()

    if ctx.invoked_subcommand is None:
        print(ctx.get_help())
        raise typer.Exit()

    app_context = AppContext(
        verbose=verbose, log_file=log_file, config_file=config_file
    )
    ctx.obj = app_context

    # Set log level based on verbosity, debug flag, or config
    log_level = logging.WARNING
    if debug:
        log_level = logging.DEBUG
    elif verbose == 1:
        log_level = logging.INFO
    elif verbose >= 2:
        log_level = logging.DEBUG
    elif log_file is None:
        log_level = app_context.user_config.get_log_level_int()

    setup_logging(level=log_level, log_file=log_file)


def main() -> int:
    """Main CLI entry point."""
    exit_code = 0

    try:
        from crashsync.cli.commands import register_all_commands

        register_all_commands(app)

        app()

    except SystemExit as e:
        exit_code = e.code if isinstance(e.code, int) else 0

    except Exception as e:
        logger.exception("Unexpected error: %s", e)
        print_stack_trace_if_verbose()
        exit_code = 1

    return exit_code


if __name__ == "__main__":
    sys.exit(main())
