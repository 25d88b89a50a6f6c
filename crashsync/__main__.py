"""Allow running crashsync as ``python -m crashsync``."""

import sys

from crashsync.cli.app import main


if __name__ == "__main__":
    sys.exit(main())
