"""
Built-in sample catalog.

Used to seed an empty store and to bootstrap a missing catalog file.
"""

from ctrlsel.models.records import RECORD_FIELDS, ProductRecord


# model, dio, aio, serial, pulse, ecat real/virtual, ecat virtual, e-cam,
# pulse lin/circ/fixed, ecat lin/circ/fixed/spiral
_SAMPLE_ROWS = [
    ("AX-701", 512, 128, 2, 4, 8, 4, 4, 1, 1, 1, 1, 1, 1, 0),
    ("AX-702", 1024, 128, 4, 8, 16, 8, 8, 1, 1, 1, 1, 1, 1, 1),
    ("AX-703", 2048, 256, 6, 8, 32, 16, 16, 1, 1, 1, 1, 1, 1, 1),
    ("BX-100", 256, 64, 1, 2, 0, 0, 0, 1, 0, 0, 0, 0, 0, 0),
    ("CX-500", 1024, 256, 4, 0, 16, 8, 16, 0, 0, 0, 1, 1, 1, 1),
    ("DX-200", 512, 128, 2, 4, 4, 2, 2, 1, 1, 0, 1, 0, 0, 0),
]

DEFAULT_PRODUCTS: list[ProductRecord] = [
    ProductRecord(**dict(zip(RECORD_FIELDS, row))) for row in _SAMPLE_ROWS
]
