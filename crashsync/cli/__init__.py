"""CLI package for crashsync."""

from crashsync.cli.app import app, main


__all__ = ["app", "main"]
