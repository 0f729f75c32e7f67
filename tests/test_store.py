"""
Tests for the SQLite catalog store.

Tests cover:
- Idempotent schema creation and seeding
- Model uniqueness on insert
- All-or-nothing bulk replacement
- Lookups and filter execution
"""

import threading

import pytest

from ctrlsel.catalog.defaults import DEFAULT_PRODUCTS
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.errors import DuplicateModelError, StoreError
from ctrlsel.models.records import FilterRequest, ProductRecord


def snapshot(store: CatalogStore) -> list[dict]:
    return [entry.model_dump() for entry in store.all()]


class TestSchema:
    """Tests for schema creation and seeding."""

    def test_ensure_schema_is_idempotent(self, store):
        store.ensure_schema()
        store.ensure_schema()

        assert store.count() == 6

    def test_seed_if_empty_seeds_once(self, empty_store):
        assert empty_store.seed_if_empty(DEFAULT_PRODUCTS) == 6
        assert empty_store.seed_if_empty(DEFAULT_PRODUCTS) == 0
        assert empty_store.count() == 6

    def test_seed_skips_populated_store(self, empty_store, new_record):
        empty_store.insert_one(new_record)

        assert empty_store.seed_if_empty(DEFAULT_PRODUCTS) == 0
        assert [e.model for e in empty_store.all()] == ["EX-900"]

    def test_file_backed_store_persists(self, tmp_path, new_record):
        db_path = str(tmp_path / "products.db")
        with CatalogStore(db_path) as first:
            first.ensure_schema()
            first.insert_one(new_record)

        with CatalogStore(db_path) as second:
            second.ensure_schema()
            assert second.get("EX-900") is not None


class TestInsert:
    """Tests for single-record inserts."""

    def test_insert_returns_entry_with_id(self, store, new_record):
        entry = store.insert_one(new_record)

        assert entry.id > 0
        assert entry.to_record() == new_record
        assert store.count() == 7

    def test_duplicate_model_rejected(self, store):
        before = snapshot(store)

        with pytest.raises(DuplicateModelError):
            store.insert_one(ProductRecord(model="AX-701", dio=1))

        assert snapshot(store) == before

    def test_unstorable_count_raises_store_error(self, store):
        # Skips validation, as a caller building records by hand might
        record = ProductRecord.model_construct(model="ZX-1", dio=10**20)
        before = snapshot(store)

        with pytest.raises(StoreError):
            store.insert_one(record)

        assert snapshot(store) == before

    def test_model_names_are_case_sensitive(self, store):
        store.insert_one(ProductRecord(model="ax-701"))

        assert store.get("ax-701") is not None
        assert store.get("AX-701").dio == 512

    def test_stored_flags_read_back_as_bool(self, store):
        entry = store.get("CX-500")

        assert entry.ethercat_interp_spiral is True
        assert entry.pulse_interp_linear is False


class TestReplaceAll:
    """Tests for atomic bulk replacement."""

    def test_replace_swaps_contents(self, store, new_record):
        count = store.replace_all([new_record])

        assert count == 1
        assert [e.model for e in store.all()] == ["EX-900"]

    def test_replace_with_empty_list_clears(self, store):
        assert store.replace_all([]) == 0
        assert store.count() == 0

    def test_duplicate_in_batch_leaves_store_unchanged(self, store, new_record):
        """A failed replace must not leave a partial or empty catalog."""
        before = snapshot(store)
        batch = [new_record, ProductRecord(model="NEW-1"), ProductRecord(model="EX-900", dio=1)]

        with pytest.raises(DuplicateModelError):
            store.replace_all(batch)

        assert snapshot(store) == before

    def test_store_usable_after_failed_replace(self, store, new_record):
        with pytest.raises(DuplicateModelError):
            store.replace_all([new_record, new_record])

        store.insert_one(new_record)
        assert store.count() == 7

    def test_unstorable_count_leaves_store_unchanged(self, store, new_record):
        before = snapshot(store)
        bad = ProductRecord.model_construct(model="ZX-1", aio=10**20)

        with pytest.raises(StoreError):
            store.replace_all([new_record, bad])

        assert snapshot(store) == before

    def test_readers_never_see_partial_catalog(self, store):
        """Concurrent reads during replaces always see a whole catalog."""
        sizes = set()
        stop = threading.Event()

        def reader():
            while True:
                sizes.add(len(store.all()))
                if stop.is_set():
                    break

        thread = threading.Thread(target=reader)
        thread.start()
        try:
            for _ in range(50):
                store.replace_all(DEFAULT_PRODUCTS)
        finally:
            stop.set()
            thread.join()

        assert sizes == {6}


class TestQuery:
    """Tests for reads and filters."""

    def test_all_is_ordered_by_id(self, store):
        ids = [e.id for e in store.all()]
        assert ids == sorted(ids)

    def test_get_missing_returns_none(self, store):
        assert store.get("NOPE") is None

    def test_filter_runs_request(self, store):
        results = store.filter(FilterRequest(dio=2048))
        assert [e.model for e in results] == ["AX-703"]

    def test_empty_filter_returns_all(self, store):
        assert store.filter(FilterRequest()) == store.all()
