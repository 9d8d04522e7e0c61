"""
Spreadsheet → row dictionaries.

Reads the first worksheet of an ``.xlsx`` workbook (openpyxl) or a delimited
text file (``.csv``/``.txt``). The first non-empty row is taken as the
heading row; every following non-empty row becomes a ``{heading: value}``
dictionary. Headings are slugged (``"First Name"`` → ``first_name``) and
values are made JSON-safe so the result can go straight into the cache.
"""

from __future__ import annotations

import csv
import io
import re
import unicodedata
import zipfile
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional, Sequence

from openpyxl import load_workbook
from openpyxl.utils.exceptions import InvalidFileException

TEXT_EXTENSIONS = {"csv", "txt"}
WORKBOOK_EXTENSIONS = {"xlsx"}
SUPPORTED_EXTENSIONS = TEXT_EXTENSIONS | WORKBOOK_EXTENSIONS
CSV_DELIMITERS = ",;\t|"
_SNIFF_BYTES = 64 * 1024


class SpreadsheetError(Exception):
    """Raised when a file cannot be parsed as a spreadsheet."""


def slug_heading(value: Any) -> str:
    """Lowercase ASCII snake_case version of a heading cell."""
    text = "" if value is None else str(value)
    text = unicodedata.normalize("NFKD", text).encode("ascii", "ignore").decode("ascii")
    text = re.sub(r"[^a-zA-Z0-9]+", "_", text).strip("_")
    return text.lower()


def json_safe(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        if isinstance(value, str) and value == "":
            return None
        return value
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, timedelta):
        return value.total_seconds()
    if isinstance(value, Decimal):
        return float(value)
    return str(value)


def _is_blank(cell: Any) -> bool:
    return cell is None or (isinstance(cell, str) and not cell.strip())


def _headings(raw: Sequence[Any]) -> list[str]:
    used: set[str] = set()
    result = []
    for index, cell in enumerate(raw, start=1):
        base = slug_heading(cell) or f"column_{index}"
        key, suffix = base, 1
        while key in used:
            suffix += 1
            key = f"{base}_{suffix}"
        used.add(key)
        result.append(key)
    return result


def rows_to_records(rows: Iterable[Sequence[Any]]) -> list[dict[str, Any]]:
    """Turn raw rows (heading row first) into a list of dictionaries.

    Every record has the same keys: cells past the heading row's width get
    positional headings and shorter rows are padded with None.
    """
    heading_row: Optional[list[Any]] = None
    body: list[list[Any]] = []
    for row in rows:
        if all(_is_blank(cell) for cell in row):
            continue
        if heading_row is None:
            heading_row = list(row)
        else:
            body.append(list(row))
    if heading_row is None:
        return []

    width = max([len(heading_row), *(len(values) for values in body)])
    headings = _headings(heading_row + [None] * (width - len(heading_row)))
    records = []
    for values in body:
        values.extend([None] * (width - len(values)))
        records.append({key: json_safe(cell) for key, cell in zip(headings, values)})
    return records


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError:
        return data.decode("latin-1")


def _iter_text_rows(path: Path) -> Iterator[list[str]]:
    text = _decode(path.read_bytes())
    try:
        dialect = csv.Sniffer().sniff(text[:_SNIFF_BYTES], delimiters=CSV_DELIMITERS)
        delimiter = dialect.delimiter
    except csv.Error:
        delimiter = ","
    try:
        yield from csv.reader(io.StringIO(text, newline=""), delimiter=delimiter)
    except csv.Error as exc:
        raise SpreadsheetError(f"Malformed delimited file: {exc}") from exc


def _iter_workbook_rows(path: Path) -> Iterator[tuple]:
    try:
        workbook = load_workbook(path, read_only=True, data_only=True)
    except (InvalidFileException, zipfile.BadZipFile, KeyError, OSError) as exc:
        raise SpreadsheetError(f"Unreadable workbook: {exc}") from exc
    try:
        if not workbook.worksheets:
            return
        yield from workbook.worksheets[0].iter_rows(values_only=True)
    finally:
        workbook.close()


def read_rows(path: str | Path, extension: Optional[str] = None) -> list[dict[str, Any]]:
    """Parse the first sheet/table of ``path`` into row dictionaries."""
    file_path = Path(path)
    ext = (extension or file_path.suffix).lstrip(".").lower()
    if ext in WORKBOOK_EXTENSIONS:
        return rows_to_records(_iter_workbook_rows(file_path))
    if ext in TEXT_EXTENSIONS:
        return rows_to_records(_iter_text_rows(file_path))
    raise SpreadsheetError(f"Unsupported spreadsheet type: .{ext}")
