"""
Command-line interface.
"""

from ctrlsel.cli.main import cli, main

__all__ = ["cli", "main"]
