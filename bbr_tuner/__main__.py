"""
Entry point for running bbr_tuner as a module.

Usage:
    python -m bbr_tuner [apply|uninstall|revert|status]
"""

import sys

from .cli import main

if __name__ == "__main__":
    sys.exit(main())
