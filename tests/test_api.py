"""
Tests for FastAPI endpoints.

Uses TestClient to test API endpoints without running a server.
"""

import json

import pytest
from fastapi.testclient import TestClient

from ctrlsel.api.server import create_app
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.config import Settings


ADMIN_SECRET = "test-secret"


@pytest.fixture
def record_payload():
    return {
        "model": "EX-900",
        "dio": 4096,
        "aio": 512,
        "serial_ports": 8,
        "pulse_axes": 16,
        "ethercat_real_or_virtual_axes": 64,
        "ethercat_virtual_axes": 32,
        "e_cam_axes": 32,
        "pulse_interp_linear": True,
        "ethercat_interp_spiral": True,
    }


def models_of(data) -> list[str]:
    return [item["model"] for item in data]


class TestSystemEndpoints:
    """Tests for /, /health and /fields."""

    def test_root_returns_html(self, client):
        response = client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Controller Selector" in response.text

    def test_health_reports_catalog_size(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["products"] == 6
        assert data["admin_enabled"] is True

    def test_fields(self, client):
        data = client.get("/fields").json()

        assert "dio" in data["numeric"]
        assert "ethercat_virtual_axes" in data["numeric"]
        assert "ethercat_interp_spiral" in data["flags"]


class TestFilterEndpoint:
    """Tests for /filter-query."""

    def test_dio_minimum(self, client):
        response = client.post("/filter-query", json={"dio": 1024})

        assert response.status_code == 200
        assert models_of(response.json()) == ["AX-702", "AX-703", "CX-500"]

    def test_empty_filter_returns_catalog(self, client):
        filtered = client.post("/filter-query", json={}).json()
        everything = client.get("/catalog-all").json()

        assert filtered == everything
        assert len(filtered) == 6

    def test_spiral_flag(self, client):
        data = client.post("/filter-query", json={"ethercat_interp_spiral": True}).json()

        assert models_of(data) == ["AX-702", "AX-703", "CX-500"]

    def test_ui_style_request(self, client):
        """Blank numbers and false flags add no constraint."""
        body = {"dio": "", "aio": "", "serial_ports": 2, "pulse_interp_linear": False}
        data = client.post("/filter-query", json=body).json()

        assert models_of(data) == ["AX-701", "AX-702", "AX-703", "CX-500", "DX-200"]

    def test_combined_ethercat_budget(self, client):
        body = {"ethercat_real_or_virtual_axes": 6, "ethercat_virtual_axes": 6}
        data = client.post("/filter-query", json=body).json()

        assert "AX-701" in models_of(data)
        assert "DX-200" not in models_of(data)

    def test_malformed_filter_returns_error(self, client):
        response = client.post("/filter-query", json={"dio": "lots"})

        assert response.status_code == 422
        assert "dio" in response.json()["error"]

    def test_negative_minimum_rejected(self, client):
        response = client.post("/filter-query", json={"aio": -1})

        assert response.status_code == 422
        assert "error" in response.json()

    def test_oversized_minimum_returns_error(self, client):
        response = client.post("/filter-query", json={"dio": 10**20})

        assert response.status_code == 422
        assert "dio" in response.json()["error"]

    def test_largest_ethercat_floors_match_nothing(self, client):
        body = {"ethercat_real_or_virtual_axes": 2**63 - 1, "ethercat_virtual_axes": 2**63 - 1}
        response = client.post("/filter-query", json=body)

        assert response.status_code == 200
        assert response.json() == []

    def test_results_include_store_id(self, client):
        data = client.post("/filter-query", json={"dio": 2048}).json()

        assert data[0]["model"] == "AX-703"
        assert isinstance(data[0]["id"], int)


class TestAdminSync:
    """Tests for /admin/sync and /admin/export."""

    def test_bad_secret_rejected_before_any_work(self, client, settings):
        response = client.post("/admin/sync", json={"secret": "wrong"})

        assert response.status_code == 403
        assert "error" in response.json()
        assert not settings.catalog_file.exists()

    def test_missing_secret_rejected(self, client):
        assert client.post("/admin/export", json={}).status_code == 403

    def test_sync_bootstraps_and_imports(self, client, settings):
        response = client.post("/admin/sync", json={"secret": ADMIN_SECRET})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert settings.catalog_file.exists()

    def test_export_writes_file(self, client, settings):
        response = client.post("/admin/export", json={"secret": ADMIN_SECRET})

        assert response.status_code == 200
        data = json.loads(settings.catalog_file.read_text())
        assert len(data) == 6
        assert "id" not in data[0]

    def test_sync_failure_keeps_catalog(self, client, settings):
        settings.catalog_file.parent.mkdir(parents=True, exist_ok=True)
        settings.catalog_file.write_text("{broken")

        response = client.post("/admin/sync", json={"secret": ADMIN_SECRET})

        assert response.status_code == 500
        assert "error" in response.json()
        assert len(client.get("/catalog-all").json()) == 6

    def test_sync_picks_up_file_edits(self, client, settings, record_payload):
        settings.catalog_file.parent.mkdir(parents=True, exist_ok=True)
        settings.catalog_file.write_text(json.dumps([record_payload]))

        response = client.post("/admin/sync", json={"secret": ADMIN_SECRET})

        assert response.json()["count"] == 1
        assert models_of(client.get("/catalog-all").json()) == ["EX-900"]


class TestAdminAdd:
    """Tests for /admin/add."""

    def test_add_record(self, client, record_payload):
        response = client.post("/admin/add", json={"secret": ADMIN_SECRET, "record": record_payload})

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert "EX-900" in models_of(client.get("/catalog-all").json())

    def test_add_duplicate_returns_error(self, client, record_payload):
        record_payload["model"] = "AX-701"
        response = client.post("/admin/add", json={"secret": ADMIN_SECRET, "record": record_payload})

        assert response.status_code == 500
        assert "AX-701" in response.json()["error"]
        assert len(client.get("/catalog-all").json()) == 6

    def test_add_bad_secret(self, client, record_payload):
        response = client.post("/admin/add", json={"secret": "nope", "record": record_payload})

        assert response.status_code == 403
        assert len(client.get("/catalog-all").json()) == 6

    def test_add_missing_model(self, client):
        response = client.post("/admin/add", json={"secret": ADMIN_SECRET, "record": {"dio": 8}})

        assert response.status_code == 422
        assert "error" in response.json()

    def test_add_oversized_count_returns_error(self, client, record_payload):
        record_payload["dio"] = 10**20
        response = client.post("/admin/add", json={"secret": ADMIN_SECRET, "record": record_payload})

        assert response.status_code == 422
        assert "dio" in response.json()["error"]
        assert len(client.get("/catalog-all").json()) == 6

    def test_add_bad_secret_with_invalid_record_is_403(self, client):
        """The secret is checked before the record is looked at."""
        response = client.post("/admin/add", json={"secret": "nope", "record": {"dio": -1}})

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid admin secret"}

    def test_add_non_string_secret_is_403(self, client, record_payload):
        response = client.post("/admin/add", json={"secret": 12345, "record": record_payload})

        assert response.status_code == 403

    def test_add_without_record_is_422(self, client):
        response = client.post("/admin/add", json={"secret": ADMIN_SECRET})

        assert response.status_code == 422
        assert response.json()["error"].startswith("Invalid record")

    def test_added_record_not_in_file_until_export(self, client, settings, record_payload):
        client.post("/admin/export", json={"secret": ADMIN_SECRET})
        client.post("/admin/add", json={"secret": ADMIN_SECRET, "record": record_payload})

        assert "EX-900" not in settings.catalog_file.read_text()

        client.post("/admin/export", json={"secret": ADMIN_SECRET})
        assert "EX-900" in settings.catalog_file.read_text()


class TestAdminBulkReplace:
    """Tests for /admin/bulk-replace."""

    def test_bulk_replace(self, client, record_payload):
        second = dict(record_payload, model="EX-901")
        response = client.post(
            "/admin/bulk-replace",
            json={"secret": ADMIN_SECRET, "records": [record_payload, second]},
        )

        assert response.status_code == 200
        assert response.json()["count"] == 2
        assert models_of(client.get("/catalog-all").json()) == ["EX-900", "EX-901"]

    def test_bulk_replace_duplicate_is_atomic(self, client, record_payload):
        before = client.get("/catalog-all").json()
        response = client.post(
            "/admin/bulk-replace",
            json={"secret": ADMIN_SECRET, "records": [record_payload, record_payload]},
        )

        assert response.status_code == 500
        assert client.get("/catalog-all").json() == before

    def test_bulk_replace_bad_secret(self, client, record_payload):
        response = client.post("/admin/bulk-replace", json={"secret": "x", "records": [record_payload]})

        assert response.status_code == 403
        assert len(client.get("/catalog-all").json()) == 6


    def test_bulk_replace_bad_secret_with_invalid_records_is_403(self, client):
        response = client.post(
            "/admin/bulk-replace",
            json={"secret": "x", "records": [{"model": ""}, "junk"]},
        )

        assert response.status_code == 403
        assert response.json() == {"error": "Invalid admin secret"}

    def test_bulk_replace_invalid_records_is_422(self, client, record_payload):
        before = client.get("/catalog-all").json()
        response = client.post(
            "/admin/bulk-replace",
            json={"secret": ADMIN_SECRET, "records": [record_payload, {"dio": 1}]},
        )

        assert response.status_code == 422
        assert "Invalid records" in response.json()["error"]
        assert client.get("/catalog-all").json() == before


class TestAppConstruction:
    """Tests for create_app wiring."""

    def test_admin_disabled_without_secret(self, json_catalog):
        app = create_app(Settings(db_path=":memory:", catalog_file=json_catalog))
        with TestClient(app) as client:
            assert client.post("/admin/sync", json={"secret": ""}).status_code == 403
            assert client.post("/admin/sync", json={"secret": "anything"}).status_code == 403
            assert client.get("/health").json()["admin_enabled"] is False

    def test_injected_store_is_used_and_left_open(self, settings, new_record):
        store = CatalogStore(":memory:")
        store.ensure_schema()
        store.insert_one(new_record)

        with TestClient(create_app(settings, store=store)) as client:
            assert models_of(client.get("/catalog-all").json()) == ["EX-900"]

        assert store.count() == 1
        store.close()

    def test_startup_imports_existing_file(self, settings, record_payload):
        settings.catalog_file.parent.mkdir(parents=True)
        settings.catalog_file.write_text(json.dumps([record_payload]))

        with TestClient(create_app(settings)) as client:
            assert models_of(client.get("/catalog-all").json()) == ["EX-900"]

    def test_unexpected_error_returns_json(self, settings):
        store = CatalogStore(":memory:")
        app = create_app(settings, store=store)

        with TestClient(app, raise_server_exceptions=False) as client:
            store.close()
            response = client.get("/catalog-all")

        assert response.status_code == 500
        assert response.json()["error"].startswith("Internal error")
