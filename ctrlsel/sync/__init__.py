"""
Catalog file sync: import, export and single-record additions.
"""

from ctrlsel.sync.adapter import SyncAdapter, SyncResult, initialize_catalog, parse_records
from ctrlsel.sync.formats import read_catalog_file, write_catalog_file

__all__ = [
    "SyncAdapter",
    "SyncResult",
    "initialize_catalog",
    "parse_records",
    "read_catalog_file",
    "write_catalog_file",
]
