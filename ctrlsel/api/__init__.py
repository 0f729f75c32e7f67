"""
HTTP API and web UI.
"""

from ctrlsel.api.server import create_app

__all__ = ["create_app"]
