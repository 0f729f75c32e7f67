"""
Command-line interface for the controller selector.

Usage:
    python -m ctrlsel init
    python -m ctrlsel list
    python -m ctrlsel query dio=1024 ethercat_interp_spiral=true [--from-file]
    python -m ctrlsel query --input filter.json
    python -m ctrlsel add --input record.json [--export]
    python -m ctrlsel sync
    python -m ctrlsel export
    python -m ctrlsel serve [--port 8000]

The CLI works on the local store directly and does not ask for the admin
secret.
"""

import argparse
import dataclasses
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from ctrlsel import __version__
from ctrlsel.catalog.filters import filter_records
from ctrlsel.catalog.store import CatalogStore
from ctrlsel.config import Settings, load_settings
from ctrlsel.errors import CatalogError, ConfigurationError
from ctrlsel.models.records import FilterRequest, ProductRecord
from ctrlsel.sync.adapter import SyncAdapter, initialize_catalog, parse_records
from ctrlsel.sync.formats import read_catalog_file

logger = logging.getLogger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="ctrlsel",
        description="Controller Selector - find industrial controller models "
                    "by minimum I/O and motion capabilities.",
    )
    parser.add_argument("--version", action="version", version=f"ctrlsel {__version__}")
    parser.add_argument(
        "--db",
        default=None,
        help="SQLite database path (default: $CTRLSEL_DB_PATH or products.db)",
    )
    parser.add_argument(
        "--catalog-file",
        type=Path,
        default=None,
        help="Catalog .xlsx or .json file (default: $CTRLSEL_CATALOG_FILE)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    subparsers.add_parser("init", help="Create the schema and seed an empty catalog")
    subparsers.add_parser("list", help="Print every catalog record as JSON")

    query_parser = subparsers.add_parser(
        "query",
        help="Print records meeting the given minimums",
    )
    query_parser.add_argument(
        "filters",
        nargs="*",
        metavar="FIELD=VALUE",
        help="Minimums (dio=1024) or required flags (ethercat_interp_spiral=true)",
    )
    query_parser.add_argument(
        "--input", "-i",
        type=Path,
        default=None,
        help="JSON file with a filter object",
    )
    query_parser.add_argument(
        "--from-file",
        action="store_true",
        help="Filter the catalog file directly instead of the database",
    )

    add_parser = subparsers.add_parser("add", help="Add one record to the catalog")
    add_parser.add_argument(
        "--input", "-i",
        type=Path,
        required=True,
        help="JSON file with one record object",
    )
    add_parser.add_argument(
        "--export",
        action="store_true",
        help="Export the catalog to the catalog file afterwards",
    )

    subparsers.add_parser("sync", help="Replace the catalog with the catalog file's contents")
    subparsers.add_parser("export", help="Write the catalog to the catalog file")

    serve_parser = subparsers.add_parser("serve", help="Start the web server")
    serve_parser.add_argument(
        "--host",
        default="127.0.0.1",
        help="Host to bind to (default: 127.0.0.1)",
    )
    serve_parser.add_argument(
        "--port", "-p",
        type=int,
        default=8000,
        help="Port to listen on (default: 8000)",
    )
    serve_parser.add_argument(
        "--reload",
        action="store_true",
        help="Enable auto-reload for development",
    )

    return parser


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = load_settings()
    overrides = {}
    if args.db:
        overrides["db_path"] = args.db
    if args.catalog_file:
        overrides["catalog_file"] = args.catalog_file
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _open(settings: Settings) -> tuple[CatalogStore, SyncAdapter]:
    store = CatalogStore(settings.db_path)
    adapter = SyncAdapter(store, settings.catalog_file)
    initialize_catalog(store, adapter)
    return store, adapter


def _print_records(records) -> None:
    print(json.dumps([r.model_dump() for r in records], indent=2))


def parse_filter_args(pairs: list[str]) -> dict:
    """Turn FIELD=VALUE strings into a filter dict."""
    data = {}
    for pair in pairs:
        name, sep, value = pair.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected FIELD=VALUE, got '{pair}'")
        data[name.strip()] = value.strip()
    return data


def cmd_init(args: argparse.Namespace, settings: Settings) -> int:
    """Create the schema and seed an empty catalog."""
    store, _ = _open(settings)
    with store:
        print(f"Catalog ready: {store.count()} records in {settings.db_path}", file=sys.stderr)
    return 0


def cmd_list(args: argparse.Namespace, settings: Settings) -> int:
    """Print every record."""
    store, _ = _open(settings)
    with store:
        _print_records(store.all())
    return 0


def cmd_query(args: argparse.Namespace, settings: Settings) -> int:
    """Print records matching the filter."""
    data = {}
    if args.input:
        with open(args.input) as f:
            data.update(json.load(f))
    data.update(parse_filter_args(args.filters))
    request = FilterRequest(**data)

    if args.from_file:
        rows = read_catalog_file(settings.catalog_file)
        results = filter_records(parse_records(rows, source=str(settings.catalog_file)), request)
    else:
        store, _ = _open(settings)
        with store:
            results = store.filter(request)

    _print_records(results)
    print(f"\n{len(results)} matching records", file=sys.stderr)
    return 0


def cmd_add(args: argparse.Namespace, settings: Settings) -> int:
    """Add one record."""
    with open(args.input) as f:
        record = ProductRecord(**json.load(f))

    store, adapter = _open(settings)
    with store:
        entry = adapter.add_record(record)
        print(f"Added {entry.model} (id {entry.id})", file=sys.stderr)
        if args.export:
            result = adapter.export_to_file()
            if not result.success:
                print(f"Error: export failed: {result.error}", file=sys.stderr)
                return 1
            print(f"Exported {result.count} records to {result.path}", file=sys.stderr)
        else:
            print("Run 'python -m ctrlsel export' to write it to the catalog file.", file=sys.stderr)
    return 0


def cmd_sync(args: argparse.Namespace, settings: Settings) -> int:
    """Import the catalog file."""
    store, adapter = _open(settings)
    with store:
        result = adapter.import_from_file()
    if not result.success:
        print(f"Error: sync failed: {result.error}", file=sys.stderr)
        return 1
    note = " (file created from defaults)" if result.bootstrapped else ""
    print(f"Imported {result.count} records from {result.path}{note}", file=sys.stderr)
    return 0


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    """Export the catalog."""
    store, adapter = _open(settings)
    with store:
        result = adapter.export_to_file()
    if not result.success:
        print(f"Error: export failed: {result.error}", file=sys.stderr)
        return 1
    print(f"Exported {result.count} records to {result.path}", file=sys.stderr)
    return 0


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    """Start the FastAPI web server."""
    import uvicorn

    print(f"\nStarting Controller Selector", file=sys.stderr)
    print(f"UI: http://{args.host}:{args.port}/", file=sys.stderr)
    print(f"Docs: http://{args.host}:{args.port}/docs", file=sys.stderr)
    print("\nPress Ctrl+C to stop\n", file=sys.stderr)

    uvicorn.run(
        "ctrlsel.api.server:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


COMMANDS = {
    "init": cmd_init,
    "list": cmd_list,
    "query": cmd_query,
    "add": cmd_add,
    "sync": cmd_sync,
    "export": cmd_export,
    "serve": cmd_serve,
}


def cli(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 0

    try:
        settings = _settings_for(args)
    except ConfigurationError as e:
        print(f"Configuration Error: {e}", file=sys.stderr)
        return 1

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stderr,
    )

    handler = COMMANDS[args.command]
    try:
        return handler(args, settings)
    except json.JSONDecodeError as e:
        print(f"Error: Invalid JSON: {e}", file=sys.stderr)
        return 1
    except (ValidationError, ValueError) as e:
        print(f"Validation Error: {e}", file=sys.stderr)
        return 1
    except CatalogError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.exception("Command %s failed", args.command)
        print(f"Error: {e}", file=sys.stderr)
        return 1


def main():
    """Console script entrypoint wrapper."""
    return cli()


if __name__ == "__main__":
    sys.exit(cli())
