"""
Pydantic models for catalog records and filter requests.
"""

from ctrlsel.models.records import (
    FLAG_FIELDS,
    NUMERIC_FIELDS,
    MAX_COUNT,
    RECORD_FIELDS,
    CatalogEntry,
    FilterRequest,
    ProductRecord,
)

__all__ = [
    "FLAG_FIELDS",
    "NUMERIC_FIELDS",
    "MAX_COUNT",
    "RECORD_FIELDS",
    "CatalogEntry",
    "FilterRequest",
    "ProductRecord",
]
