"""
Executable module for deplock.

Running:
    python -m deplock

is equivalent to:
    deplock
"""

from __future__ import annotations

import sys

from deplock.cli import main

if __name__ == "__main__":
    sys.exit(main())
