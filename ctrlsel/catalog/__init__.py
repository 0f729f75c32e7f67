"""
Controller catalog: SQLite storage and the minimum-capability filter.
"""

from ctrlsel.catalog.defaults import DEFAULT_PRODUCTS
from ctrlsel.catalog.filters import Predicate, build_predicates, filter_records, matches
from ctrlsel.catalog.store import CatalogStore

__all__ = [
    "DEFAULT_PRODUCTS",
    "Predicate",
    "build_predicates",
    "filter_records",
    "matches",
    "CatalogStore",
]
