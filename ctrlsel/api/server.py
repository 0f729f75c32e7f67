"""
FastAPI server for the controller selector.

Provides the filter and catalog endpoints, the secret-gated admin
endpoints, and a single-page HTML UI.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, Optional

from fastapi import Depends, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from pydantic import BaseModel, Field, TypeAdapter, ValidationError

from ctrlsel import __version__
from ctrlsel.admin import AdminGate
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.config import Settings, load_settings
from ctrlsel.errors import CatalogError, InvalidRecordError, SyncError
from ctrlsel.models.records import FLAG_FIELDS, NUMERIC_FIELDS, CatalogEntry, FilterRequest, ProductRecord
from ctrlsel.sync.adapter import SyncAdapter, initialize_catalog

logger = logging.getLogger(__name__)


# HTML UI Template
HTML_UI = """
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Controller Selector</title>
    <style>
        * { box-sizing: border-box; }
        body {
            font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, sans-serif;
            max-width: 1400px;
            margin: 0 auto;
            padding: 20px;
            background: #f5f5f5;
            color: #333;
        }
        h1 { color: #2c3e50; border-bottom: 3px solid #3498db; padding-bottom: 10px; }
        .container { display: flex; gap: 20px; flex-wrap: wrap; }
        .panel {
            background: white;
            padding: 20px;
            border-radius: 8px;
            box-shadow: 0 2px 4px rgba(0,0,0,0.1);
        }
        .filters { flex: 0 0 320px; }
        .results { flex: 1; min-width: 500px; overflow-x: auto; }
        .field { display: flex; justify-content: space-between; margin-bottom: 6px; }
        .field input[type=number] { width: 90px; }
        .flags label { display: block; font-size: 13px; margin-bottom: 4px; }
        button {
            padding: 10px 20px;
            font-size: 14px;
            cursor: pointer;
            border: none;
            border-radius: 4px;
            margin: 10px 10px 0 0;
        }
        .btn-primary { background: #3498db; color: white; }
        .btn-primary:hover { background: #2980b9; }
        .btn-secondary { background: #95a5a6; color: white; }
        .btn-secondary:hover { background: #7f8c8d; }
        table { border-collapse: collapse; width: 100%; font-size: 12px; }
        th, td { border: 1px solid #ddd; padding: 6px; text-align: center; }
        th { background: #f8f9fa; }
        .yes { color: #27ae60; }
        .no { color: #bbb; }
        .admin { margin-top: 20px; }
        .admin textarea {
            width: 100%;
            height: 160px;
            font-family: 'Monaco', 'Menlo', monospace;
            font-size: 12px;
        }
        .status { margin-top: 10px; font-size: 13px; }
        .error { color: #e74c3c; }
    </style>
</head>
<body>
    <h1>Controller Selector</h1>
    <div class="container">
        <div class="panel filters">
            <h3>Minimum capabilities</h3>
            <div id="numericFields"></div>
            <h3>Required interpolation</h3>
            <div id="flagFields" class="flags"></div>
            <button class="btn-primary" onclick="runFilter()">Search</button>
            <button class="btn-secondary" onclick="resetFilter()">Reset</button>
        </div>
        <div class="panel results">
            <h3 id="resultTitle">Matching controllers</h3>
            <div id="results"></div>
        </div>
    </div>

    <div class="panel admin">
        <h3>Admin</h3>
        <input type="password" id="secret" placeholder="Admin secret">
        <button class="btn-secondary" onclick="admin('/admin/sync', {})">Sync from file</button>
        <button class="btn-secondary" onclick="admin('/admin/export', {})">Export to file</button>
        <button class="btn-secondary" onclick="showAll()">Show full catalog</button>
        <textarea id="newRecord">{"model": "NEW-1", "dio": 0, "aio": 0}</textarea>
        <button class="btn-primary" onclick="addRecord()">Add record</button>
        <div id="adminStatus" class="status"></div>
    </div>

    <script>
        let fields = { numeric: [], flags: [] };

        async function loadFields() {
            fields = await (await fetch('/fields')).json();
            document.getElementById('numericFields').innerHTML = fields.numeric.map(f =>
                `<div class="field"><label for="f_${f}">${f}</label>` +
                `<input type="number" min="0" id="f_${f}"></div>`).join('');
            document.getElementById('flagFields').innerHTML = fields.flags.map(f =>
                `<label><input type="checkbox" id="f_${f}"> ${f}</label>`).join('');
            runFilter();
        }

        function collectFilter() {
            const body = {};
            fields.numeric.forEach(f => {
                const v = document.getElementById('f_' + f).value;
                if (v !== '') body[f] = Number(v);
            });
            fields.flags.forEach(f => {
                if (document.getElementById('f_' + f).checked) body[f] = true;
            });
            return body;
        }

        function resetFilter() {
            fields.numeric.forEach(f => document.getElementById('f_' + f).value = '');
            fields.flags.forEach(f => document.getElementById('f_' + f).checked = false);
            runFilter();
        }

        async function runFilter() {
            const response = await fetch('/filter-query', {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify(collectFilter())
            });
            const data = await response.json();
            if (!response.ok) {
                document.getElementById('results').innerHTML = `<p class="error">${data.error}</p>`;
                return;
            }
            renderTable('Matching controllers', data);
        }

        async function showAll() {
            renderTable('Full catalog', await (await fetch('/catalog-all')).json());
        }

        function renderTable(title, rows) {
            document.getElementById('resultTitle').textContent = `${title} (${rows.length})`;
            const cols = ['model', ...fields.numeric, ...fields.flags];
            let html = '<table><tr>' + cols.map(c => `<th>${c}</th>`).join('') + '</tr>';
            rows.forEach(r => {
                html += '<tr>' + cols.map(c => {
                    const v = r[c];
                    if (v === true) return '<td class="yes">&#10003;</td>';
                    if (v === false) return '<td class="no">-</td>';
                    return `<td>${v}</td>`;
                }).join('') + '</tr>';
            });
            document.getElementById('results').innerHTML = html + '</table>';
        }

        async function admin(path, extra) {
            const status = document.getElementById('adminStatus');
            const body = Object.assign({ secret: document.getElementById('secret').value }, extra);
            const response = await fetch(path, {
                method: 'POST',
                headers: { 'Content-Type': 'application/json' },
                body: JSON.stringify(body)
            });
            const data = await response.json();
            status.className = response.ok ? 'status' : 'status error';
            status.textContent = response.ok ? `Done (${path})` : `Error: ${data.error}`;
            if (response.ok) showAll();
        }

        function addRecord() {
            try {
                admin('/admin/add', { record: JSON.parse(document.getElementById('newRecord').value) });
            } catch (e) {
                document.getElementById('adminStatus').textContent = `Error: ${e.message}`;
            }
        }

        loadFields();
    </script>
</body>
</html>
"""


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    products: int
    admin_enabled: bool = Field(description="Whether an admin secret is configured")


class FieldsResponse(BaseModel):
    """Filterable field names."""
    numeric: list[str]
    flags: list[str]


class ErrorResponse(BaseModel):
    """Error response model."""
    error: str


class SuccessResponse(BaseModel):
    """Admin operation response."""
    success: bool = True
    count: Optional[int] = Field(default=None, description="Records affected")


class AdminRequest(BaseModel):
    """
    Body of an admin request.

    Payload fields stay unvalidated until the secret has been checked, so
    an unauthorized caller never learns anything about record validation.
    """
    secret: Any = None


class AddRecordRequest(AdminRequest):
    record: Any = None


class BulkReplaceRequest(AdminRequest):
    records: Any = None


RECORD_LIST = TypeAdapter(list[ProductRecord])


def get_store(request: Request) -> CatalogStore:
    return request.app.state.store


def get_sync(request: Request) -> SyncAdapter:
    return request.app.state.sync


def get_gate(request: Request) -> AdminGate:
    return request.app.state.gate


def _validation_message(errors, prefix: str = "Invalid request") -> str:
    parts = []
    for err in errors:
        location = ".".join(str(part) for part in err.get("loc", ()) if part != "body")
        parts.append(f"{location}: {err.get('msg')}" if location else str(err.get("msg")))
    return f"{prefix}: " + "; ".join(parts)


def validate_record(data: Any) -> ProductRecord:
    try:
        return ProductRecord.model_validate(data)
    except ValidationError as e:
        raise InvalidRecordError(_validation_message(e.errors(), "Invalid record")) from e


def validate_records(data: Any) -> list[ProductRecord]:
    try:
        return RECORD_LIST.validate_python(data)
    except ValidationError as e:
        raise InvalidRecordError(_validation_message(e.errors(), "Invalid records")) from e


def create_app(settings: Optional[Settings] = None, store: Optional[CatalogStore] = None) -> FastAPI:
    """
    Build the API application.

    Args:
        settings: Settings to use. If None, loaded from the environment.
        store: Store to serve. If None, one is opened at settings.db_path
            and closed on shutdown.

    Returns:
        Configured FastAPI app; the catalog is initialized on startup.
    """
    settings = settings or load_settings()
    owns_store = store is None
    store = store or CatalogStore(settings.db_path)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        initialize_catalog(app.state.store, app.state.sync)
        yield
        if owns_store:
            app.state.store.close()

    app = FastAPI(
        title="Controller Selector API",
        description="Filter industrial controller models by minimum capabilities.",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.sync = SyncAdapter(store, settings.catalog_file)
    app.state.gate = AdminGate(settings.admin_secret)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["*"],
    )

    @app.exception_handler(CatalogError)
    async def catalog_error_handler(request: Request, exc: CatalogError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=422, content={"error": _validation_message(exc.errors())})

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception):
        logger.error("Unhandled error on %s: %s", request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"error": f"Internal error: {exc}"})

    @app.get("/", response_class=HTMLResponse)
    async def root():
        """Serve the HTML UI."""
        return HTML_UI

    @app.get("/health", response_model=HealthResponse, tags=["System"])
    def health_check(
        store: CatalogStore = Depends(get_store),
        gate: AdminGate = Depends(get_gate),
    ):
        """Check if the API is running."""
        return HealthResponse(
            status="healthy",
            version=__version__,
            products=store.count(),
            admin_enabled=gate.enabled,
        )

    @app.get("/fields", response_model=FieldsResponse, tags=["Reference"])
    async def list_fields():
        """Get the filterable numeric and flag fields."""
        return FieldsResponse(numeric=list(NUMERIC_FIELDS), flags=list(FLAG_FIELDS))

    @app.post(
        "/filter-query",
        response_model=list[CatalogEntry],
        responses={422: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["Catalog"],
    )
    def filter_query(filters: FilterRequest, store: CatalogStore = Depends(get_store)):
        """
        Find controllers meeting every requested minimum.

        Unset fields impose no constraint; an empty body returns the
        whole catalog.
        """
        results = store.filter(filters)
        logger.info("Filter %s matched %d records",
                    filters.model_dump(exclude_none=True), len(results))
        return results

    @app.get("/catalog-all", response_model=list[CatalogEntry], tags=["Catalog"])
    def catalog_all(store: CatalogStore = Depends(get_store)):
        """Get every catalog record."""
        return store.all()

    @app.post(
        "/admin/sync",
        response_model=SuccessResponse,
        responses={403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["Admin"],
    )
    def admin_sync(
        body: AdminRequest,
        sync: SyncAdapter = Depends(get_sync),
        gate: AdminGate = Depends(get_gate),
    ):
        """Replace the catalog with the contents of the catalog file."""
        gate.check(body.secret)
        result = sync.import_from_file()
        if not result.success:
            raise SyncError(result.error or "Import failed")
        return SuccessResponse(count=result.count)

    @app.post(
        "/admin/export",
        response_model=SuccessResponse,
        responses={403: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
        tags=["Admin"],
    )
    def admin_export(
        body: AdminRequest,
        sync: SyncAdapter = Depends(get_sync),
        gate: AdminGate = Depends(get_gate),
    ):
        """Write the catalog to the catalog file."""
        gate.check(body.secret)
        result = sync.export_to_file()
        if not result.success:
            raise SyncError(result.error or "Export failed")
        return SuccessResponse(count=result.count)

    @app.post(
        "/admin/add",
        response_model=SuccessResponse,
        responses={
            403: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
        tags=["Admin"],
    )
    def admin_add(
        body: AddRecordRequest,
        sync: SyncAdapter = Depends(get_sync),
        gate: AdminGate = Depends(get_gate),
    ):
        """Add one record to the catalog (export to persist it)."""
        gate.check(body.secret)
        sync.add_record(validate_record(body.record))
        return SuccessResponse(count=1)

    @app.post(
        "/admin/bulk-replace",
        response_model=SuccessResponse,
        responses={
            403: {"model": ErrorResponse},
            422: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        },
        tags=["Admin"],
    )
    def admin_bulk_replace(
        body: BulkReplaceRequest,
        sync: SyncAdapter = Depends(get_sync),
        gate: AdminGate = Depends(get_gate),
    ):
        """Replace the whole catalog with the records in the request body."""
        gate.check(body.secret)
        count = sync.replace_from_payload(validate_records(body.records))
        return SuccessResponse(count=count)

    return app
