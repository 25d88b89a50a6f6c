"""Error handling decorators for CLI commands."""

import logging
import sys
import traceback
from collections.abc import Callable
from functools import wraps
from typing import Any

import typer

from crashsync.core.errors import (
    CacheInvariantError,
    ConfigError,
    CrashSyncError,
    SourceControlError,
    SymbolCacheError,
)
from crashsync.core.structlog_logger import get_struct_logger


__all__ = ["handle_errors", "print_stack_trace_if_verbose"]

logger = get_struct_logger(__name__)


def handle_errors(func: Callable[..., Any]) -> Callable[..., Any]:
    """Decorator to handle crashsync exceptions in CLI commands.

    Known errors are logged as structured events and turned into exit
    code 1; anything else is logged as unexpected.

    Args:
        func: The function to decorate

    Returns:
        Decorated function with error handling
    """

    @wraps(func)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return func(*args, **kwargs)
        except ConfigError as e:
            logger.error("configuration_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except CacheInvariantError as e:
            logger.error("cache_invariant_violated", error=str(e), exc_info=True)
            raise typer.Exit(1) from e
        except SymbolCacheError as e:
            logger.error("symbol_cache_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except SourceControlError as e:
            logger.error("source_control_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except CrashSyncError as e:
            logger.error("crashsync_error", error=str(e))
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e
        except typer.Exit:
            raise
        except Exception as e:
            exc_info = logger.isEnabledFor(logging.DEBUG)
            logger.error("unexpected_error", error=str(e), exc_info=exc_info)
            print_stack_trace_if_verbose()
            raise typer.Exit(1) from e

    return wrapper


def print_stack_trace_if_verbose() -> None:
    """Print stack trace if verbose/debug mode is enabled."""
    if any(arg in sys.argv for arg in ["-v", "-vv", "--verbose", "--debug"]):
        print("\nStack trace:", file=sys.stderr)
        traceback.print_exc(file=sys.stderr)
