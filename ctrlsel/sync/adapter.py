"""
Sync between the catalog store and the human-editable catalog file.

The file is the source of truth: an import replaces the whole store with
the file's contents, an export overwrites the whole file with the store's
contents. There is no field-level merge; the last sync wins.
"""

import logging
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel, Field, ValidationError

from ctrlsel.catalog.defaults import DEFAULT_PRODUCTS
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.errors import SyncError
from ctrlsel.models.records import CatalogEntry, ProductRecord
from ctrlsel.sync.formats import read_catalog_file, write_catalog_file

logger = logging.getLogger(__name__)


class SyncResult(BaseModel):
    """Outcome of an import or export."""
    success: bool = Field(..., description="Whether the operation completed")
    count: int = Field(default=0, ge=0, description="Records read or written")
    path: str = Field(..., description="Catalog file involved")
    bootstrapped: bool = Field(default=False, description="File was created from defaults first")
    error: Optional[str] = Field(default=None, description="Failure message")


def parse_records(rows: list[dict], source: str = "catalog file") -> list[ProductRecord]:
    """
    Validate raw rows into ProductRecords.

    Raises:
        SyncError: On the first invalid row, naming its position.
    """
    records = []
    for i, row in enumerate(rows, start=1):
        try:
            records.append(ProductRecord(**row))
        except ValidationError as e:
            raise SyncError(f"{source}: invalid record {i}: {e}") from e
    return records


class SyncAdapter:
    """Moves records between a CatalogStore and a catalog file."""

    def __init__(
        self,
        store: CatalogStore,
        path: Path,
        defaults: Optional[list[ProductRecord]] = None,
    ):
        self.store = store
        self.path = Path(path)
        self.defaults = DEFAULT_PRODUCTS if defaults is None else defaults

    def bootstrap_file(self) -> bool:
        """Write the default dataset if the file does not exist yet."""
        if self.path.exists():
            return False
        logger.info("Catalog file %s not found, writing %d default records",
                    self.path, len(self.defaults))
        write_catalog_file(self.path, self.defaults)
        return True

    def load_file(self) -> list[ProductRecord]:
        """Read and validate the file's records without touching the store."""
        return parse_records(read_catalog_file(self.path), source=str(self.path))

    def import_from_file(self) -> SyncResult:
        """
        Replace the store's contents with the catalog file.

        A missing file is first created from the defaults. Failures are
        logged and reported in the result; the store keeps its previous
        contents.
        """
        bootstrapped = False
        try:
            bootstrapped = self.bootstrap_file()
            records = self.load_file()
            count = self.store.replace_all(records)
        except Exception as e:
            logger.error("Import from %s failed: %s", self.path, e, exc_info=True)
            return SyncResult(
                success=False, path=str(self.path), bootstrapped=bootstrapped, error=str(e),
            )

        logger.info("Imported %d records from %s", count, self.path)
        return SyncResult(success=True, count=count, path=str(self.path), bootstrapped=bootstrapped)

    def export_to_file(self) -> SyncResult:
        """Overwrite the catalog file with every stored record, minus store ids."""
        try:
            records = [entry.to_record() for entry in self.store.all()]
            write_catalog_file(self.path, records)
        except Exception as e:
            logger.error("Export to %s failed: %s", self.path, e, exc_info=True)
            return SyncResult(success=False, path=str(self.path), error=str(e))

        logger.info("Exported %d records to %s", len(records), self.path)
        return SyncResult(success=True, count=len(records), path=str(self.path))

    def add_record(self, record: ProductRecord) -> CatalogEntry:
        """
        Insert one record into the store only.

        The file is not touched; run an export to persist the addition.

        Raises:
            DuplicateModelError: If the model already exists.
        """
        return self.store.insert_one(record)

    def replace_from_payload(self, records: Iterable[ProductRecord]) -> int:
        """
        Replace the store from an in-memory payload instead of the file.

        Raises:
            DuplicateModelError: If the payload repeats a model name.
        """
        return self.store.replace_all(records)


def initialize_catalog(store: CatalogStore, adapter: SyncAdapter) -> int:
    """
    Prepare the store on startup.

    Creates the schema, then fills an empty store from the catalog file
    when one exists, or from the built-in defaults otherwise.

    Returns:
        Number of records in the store afterwards.
    """
    store.ensure_schema()
    if store.count() == 0:
        if adapter.path.exists():
            result = adapter.import_from_file()
            if not result.success:
                logger.warning("Startup import failed, falling back to defaults")
                store.seed_if_empty(adapter.defaults)
        else:
            store.seed_if_empty(adapter.defaults)
    count = store.count()
    logger.info("Catalog ready with %d records", count)
    return count
