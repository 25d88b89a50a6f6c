"""XDG base directory helpers."""

import os
from pathlib import Path


def get_xdg_config_dir() -> Path:
    """Get XDG config directory for crashsync.

    Returns:
        Path to config directory: $XDG_CONFIG_HOME/crashsync or ~/.config/crashsync
    """
    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    if xdg_config:
        return Path(xdg_config) / "crashsync"
    return Path.home() / ".config" / "crashsync"
