"""crashsync - symbol sync and cache tool for crash analysis."""

from importlib.metadata import distribution


__version__ = distribution(__package__ or "crashsync").version

__all__ = ["__version__"]

# Import CLI after setting __version__ to avoid circular imports
from .cli import app, main


__all__ += ["app", "main"]
