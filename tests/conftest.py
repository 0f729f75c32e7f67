"""
Pytest configuration and shared fixtures.
"""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from ctrlsel.api.server import create_app
from ctrlsel.catalog.defaults import DEFAULT_PRODUCTS
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.config import Settings
from ctrlsel.models.records import ProductRecord
from ctrlsel.sync.adapter import SyncAdapter


ADMIN_SECRET = "test-secret"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    """Keep developer environment settings out of the tests."""
    for name in ("CTRLSEL_DB_PATH", "CTRLSEL_CATALOG_FILE",
                 "CTRLSEL_ADMIN_SECRET", "CTRLSEL_LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def store() -> CatalogStore:
    """In-memory store seeded with the six sample controllers."""
    s = CatalogStore(":memory:")
    s.ensure_schema()
    s.seed_if_empty(DEFAULT_PRODUCTS)
    yield s
    s.close()


@pytest.fixture
def empty_store() -> CatalogStore:
    """In-memory store with the schema and no records."""
    s = CatalogStore(":memory:")
    s.ensure_schema()
    yield s
    s.close()


@pytest.fixture
def json_catalog(tmp_path) -> Path:
    """Path for a JSON catalog file (not created)."""
    return tmp_path / "catalog" / "product_list.json"


@pytest.fixture
def xlsx_catalog(tmp_path) -> Path:
    """Path for a spreadsheet catalog file (not created)."""
    return tmp_path / "catalog" / "product_list.xlsx"


@pytest.fixture
def json_sync(store, json_catalog) -> SyncAdapter:
    return SyncAdapter(store, json_catalog)


@pytest.fixture
def settings(json_catalog) -> Settings:
    return Settings(db_path=":memory:", catalog_file=json_catalog, admin_secret=ADMIN_SECRET)


@pytest.fixture
def client(settings):
    """Test client with startup run (catalog seeded with defaults)."""
    app = create_app(settings)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def new_record() -> ProductRecord:
    return ProductRecord(
        model="EX-900",
        dio=4096,
        aio=512,
        serial_ports=8,
        pulse_axes=16,
        ethercat_real_or_virtual_axes=64,
        ethercat_virtual_axes=32,
        e_cam_axes=32,
        pulse_interp_linear=True,
        ethercat_interp_spiral=True,
    )
