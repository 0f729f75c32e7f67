"""
Entry point for running ctrlsel as a module.

Usage:
    python -m ctrlsel query dio=1024
    python -m ctrlsel sync
    python -m ctrlsel serve --port 8000
"""

import sys

from ctrlsel.cli.main import cli

if __name__ == "__main__":
    sys.exit(cli())
