"""
SQLite-backed catalog store.

One connection per store instance, shared between request threads and
serialized with a lock. Bulk replacement runs in a single transaction so
readers never see a half-written catalog.
"""

import logging
import sqlite3
import threading
from typing import Iterable, Optional, Sequence

from ctrlsel.catalog.filters import Predicate, build_predicates, where_clause
from ctrlsel.errors import DuplicateModelError, QueryError, StoreError
from ctrlsel.models.records import (
    FLAG_FIELDS,
    NUMERIC_FIELDS,
    RECORD_FIELDS,
    CatalogEntry,
    FilterRequest,
    ProductRecord,
)

logger = logging.getLogger(__name__)


TABLE_NAME = "products"

_COLUMN_DEFS = ",\n    ".join(
    ["id INTEGER PRIMARY KEY AUTOINCREMENT", "model TEXT NOT NULL UNIQUE"]
    + [f"{name} INTEGER NOT NULL DEFAULT 0 CHECK ({name} >= 0)" for name in NUMERIC_FIELDS]
    + [f"{name} INTEGER NOT NULL DEFAULT 0" for name in FLAG_FIELDS]
)

CREATE_TABLE_SQL = f"CREATE TABLE IF NOT EXISTS {TABLE_NAME} (\n    {_COLUMN_DEFS}\n)"

INSERT_SQL = (
    f"INSERT INTO {TABLE_NAME} ({', '.join(RECORD_FIELDS)}) "
    f"VALUES ({', '.join('?' for _ in RECORD_FIELDS)})"
)

SELECT_SQL = f"SELECT id, {', '.join(RECORD_FIELDS)} FROM {TABLE_NAME}"


class CatalogStore:
    """Keyed storage of controller records."""

    def __init__(self, path: str = ":memory:"):
        self.path = path
        self._lock = threading.RLock()
        self._connection = sqlite3.connect(path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row

    def ensure_schema(self) -> None:
        """Create the products table if it does not exist."""
        with self._lock, self._connection:
            self._connection.execute(CREATE_TABLE_SQL)

    def count(self) -> int:
        with self._lock:
            row = self._connection.execute(f"SELECT COUNT(*) FROM {TABLE_NAME}").fetchone()
        return row[0]

    def seed_if_empty(self, defaults: Iterable[ProductRecord]) -> int:
        """
        Insert defaults when the store holds no records.

        Returns:
            Number of records inserted (0 if the store was already populated).
        """
        with self._lock:
            if self.count() > 0:
                return 0
            inserted = self.replace_all(defaults)
        logger.info("Seeded empty catalog with %d default records", inserted)
        return inserted

    def replace_all(self, records: Iterable[ProductRecord]) -> int:
        """
        Atomically replace every record.

        Args:
            records: New catalog contents.

        Returns:
            Number of records written.

        Raises:
            DuplicateModelError: If two records share a model name. The
                store keeps its previous contents.
            StoreError: If the database rejects the write for another reason.
        """
        rows = [record.as_row() for record in records]
        with self._lock:
            try:
                with self._connection:
                    self._connection.execute(f"DELETE FROM {TABLE_NAME}")
                    self._connection.executemany(INSERT_SQL, rows)
            except sqlite3.IntegrityError as e:
                raise DuplicateModelError(f"Catalog replace aborted: {e}") from e
            except (sqlite3.Error, OverflowError) as e:
                raise StoreError(f"Catalog replace failed: {e}") from e
        logger.info("Replaced catalog with %d records", len(rows))
        return len(rows)

    def insert_one(self, record: ProductRecord) -> CatalogEntry:
        """
        Add a single record.

        Raises:
            DuplicateModelError: If the model name is already stored.
            StoreError: If the database rejects the write for another reason.
        """
        with self._lock:
            try:
                with self._connection:
                    cursor = self._connection.execute(INSERT_SQL, record.as_row())
            except sqlite3.IntegrityError as e:
                raise DuplicateModelError(f"Model '{record.model}' already exists") from e
            except (sqlite3.Error, OverflowError) as e:
                raise StoreError(f"Insert of '{record.model}' failed: {e}") from e
            row_id = cursor.lastrowid
        logger.info("Inserted model %s", record.model)
        return CatalogEntry(id=row_id, **record.model_dump())

    def get(self, model: str) -> Optional[CatalogEntry]:
        """Look up one record by model name."""
        with self._lock:
            row = self._connection.execute(
                f"{SELECT_SQL} WHERE model = ?", (model,)
            ).fetchone()
        return _to_entry(row) if row else None

    def all(self) -> list[CatalogEntry]:
        """Every stored record, in insertion order."""
        return self.query([])

    def query(self, predicates: Sequence[Predicate]) -> list[CatalogEntry]:
        """Records satisfying every predicate, in insertion order."""
        where, params = where_clause(list(predicates))
        with self._lock:
            rows = self._connection.execute(
                f"{SELECT_SQL}{where} ORDER BY id", params
            ).fetchall()
        return [_to_entry(row) for row in rows]

    def filter(self, request: FilterRequest) -> list[CatalogEntry]:
        """
        Run a filter request.

        Raises:
            QueryError: If the query cannot be executed. No partial
                results are returned.
        """
        try:
            return self.query(build_predicates(request))
        except (sqlite3.Error, OverflowError) as e:
            logger.error("Filter query failed: %s", e, exc_info=True)
            raise QueryError(f"Filter query failed: {e}") from e

    def close(self):
        """Close the database connection."""
        self._connection.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False


def _to_entry(row: sqlite3.Row) -> CatalogEntry:
    return CatalogEntry(**dict(row))
