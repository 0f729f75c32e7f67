"""
Controller Selector (ctrlsel)

A product-selection tool for industrial controller models: a SQLite
catalog of capability profiles, a minimum-capability filter, sync with a
spreadsheet or JSON catalog file, and a small web UI.

Usage:
    python -m ctrlsel init
    python -m ctrlsel query dio=1024 ethercat_interp_spiral=true
    python -m ctrlsel sync
    python -m ctrlsel serve --port 8000
"""

__version__ = "0.1.0"

from ctrlsel.models.records import CatalogEntry, FilterRequest, ProductRecord
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.sync.adapter import SyncAdapter, SyncResult
from ctrlsel.admin import AdminGate

__all__ = [
    "CatalogEntry",
    "FilterRequest",
    "ProductRecord",
    "CatalogStore",
    "SyncAdapter",
    "SyncResult",
    "AdminGate",
]
