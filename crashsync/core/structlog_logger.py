"""Structlog logger access for event-style logging."""

import structlog


def get_struct_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for ``name``.

    Events are snake_case names with key/value context, e.g.
    ``logger.error("symbol_cache_error", error=str(e))``. Pass
    ``exc_info=logger.isEnabledFor(logging.DEBUG)`` to attach the
    traceback only in debug runs.
    """
    return structlog.get_logger(name)  # type: ignore[no-any-return]
