"""
Catalog file readers and writers.

Two formats, picked by file suffix:
- .json: an array of objects keyed by record field name
- .xlsx: first worksheet, header row of field names, one record per row

Readers return plain dicts; validation into ProductRecord happens in the
sync adapter.
"""

import json
import os
import tempfile
from pathlib import Path

import openpyxl

from ctrlsel.errors import ConfigurationError
from ctrlsel.models.records import RECORD_FIELDS, ProductRecord


def read_json(path: Path) -> list[dict]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, list):
        raise ValueError(f"{path} must contain a JSON array of records")
    for i, item in enumerate(data):
        if not isinstance(item, dict):
            raise ValueError(f"{path}: item {i} is not an object")
    return data


def write_json(path: Path, records: list[ProductRecord]) -> None:
    payload = [record.model_dump() for record in records]
    _atomic_write(path, lambda tmp: tmp.write_text(
        json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
    ))


def read_xlsx(path: Path) -> list[dict]:
    """Read the first worksheet; headers are matched case-insensitively."""
    wb = openpyxl.load_workbook(path, read_only=True, data_only=True)
    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header_row = next(rows, None)
        if header_row is None:
            return []
        headers = [str(cell or "").strip().lower() for cell in header_row]

        records = []
        for values in rows:
            if all(value is None or str(value).strip() == "" for value in values):
                continue
            records.append({
                header: value
                for header, value in zip(headers, values)
                if header
            })
        return records
    finally:
        wb.close()


def write_xlsx(path: Path, records: list[ProductRecord]) -> None:
    wb = openpyxl.Workbook()
    ws = wb.active
    ws.title = "Products"
    ws.append(list(RECORD_FIELDS))
    for record in records:
        data = record.model_dump()
        ws.append([
            int(data[name]) if isinstance(data[name], bool) else data[name]
            for name in RECORD_FIELDS
        ])
    _atomic_write(path, lambda tmp: wb.save(tmp))


READERS = {".json": read_json, ".xlsx": read_xlsx}
WRITERS = {".json": write_json, ".xlsx": write_xlsx}


def _format_for(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix not in READERS:
        raise ConfigurationError(f"Unsupported catalog file type: {path}")
    return suffix


def read_catalog_file(path: Path) -> list[dict]:
    """Read raw record dicts from a catalog file."""
    return READERS[_format_for(path)](path)


def write_catalog_file(path: Path, records: list[ProductRecord]) -> None:
    """Overwrite a catalog file with the given records."""
    WRITERS[_format_for(path)](path, records)


def _atomic_write(path: Path, write) -> None:
    """Write through a temp file in the target directory, then move it into place."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.stem}-", suffix=path.suffix)
    os.close(fd)
    tmp_path = Path(tmp_name)
    try:
        write(tmp_path)
        os.replace(tmp_path, path)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
