"""I/O helpers — list input folders, load/save grids, write JSON artifacts."""

from __future__ import annotations

import json
from collections.abc import Sequence
from datetime import date, datetime, time
from pathlib import Path
from typing import Any
from zipfile import BadZipFile

from openpyxl import Workbook, load_workbook
from openpyxl.utils.exceptions import InvalidFileException

from combine_excel.errors import FormatError
from combine_excel.models import Grid, Row

OPENPYXL_SUFFIXES = (".xlsx", ".xlsm", ".xltx", ".xltm")
OUTPUT_SUFFIXES = (".xlsx",)
OUTPUT_SHEET = "Sheet1"

# ── Listing ──────────────────────────────────────────────────────


def list_input_files(input_dir: Path) -> list[Path]:
    """Return the files directly inside *input_dir*, ordered by name.

    Sub-directories are skipped.

    Raises
    ------
    FileNotFoundError
        If *input_dir* does not exist.
    NotADirectoryError
        If *input_dir* is a file.
    """
    input_dir = Path(input_dir)
    if not input_dir.exists():
        raise FileNotFoundError(f"Input directory not found: {input_dir}")
    if not input_dir.is_dir():
        raise NotADirectoryError(f"Input path is not a directory: {input_dir}")
    entries = sorted(input_dir.iterdir(), key=lambda p: p.name)
    return [p for p in entries if not p.is_dir()]


# ── Loading ──────────────────────────────────────────────────────


def cell_text(value: Any) -> str:
    """Render a decoded cell value as display text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.date().isoformat()
        return value.isoformat(sep=" ")
    if isinstance(value, (date, time)):
        return value.isoformat()
    return str(value)


def _trim_grid(rows: list[Row]) -> Grid:
    # Trailing empty cells and trailing blank rows carry no data.
    trimmed: Grid = []
    for row in rows:
        end = len(row)
        while end and row[end - 1] == "":
            end -= 1
        trimmed.append(row[:end])
    while trimmed and not trimmed[-1]:
        trimmed.pop()
    return trimmed


def _load_openpyxl(path: Path) -> Grid:
    try:
        wb = load_workbook(path, data_only=True)
    except (InvalidFileException, BadZipFile, KeyError) as exc:
        raise FormatError(f"Could not read workbook {path}: {exc}") from exc
    try:
        ws = wb.worksheets[0]
        rows = [
            [cell_text(v) for v in values]
            for values in ws.iter_rows(
                min_row=1, max_row=ws.max_row,
                min_col=1, max_col=ws.max_column,
                values_only=True,
            )
        ]
    finally:
        wb.close()
    return _trim_grid(rows)


def _load_xlrd(path: Path) -> Grid:
    try:
        import xlrd
    except ImportError as exc:
        raise FormatError(
            "Unsupported .xls input unless 'xlrd' is installed. "
            "Either convert to .xlsx or add dependency: pip install xlrd"
        ) from exc

    try:
        book = xlrd.open_workbook(str(path))
    except xlrd.XLRDError as exc:
        raise FormatError(f"Could not read workbook {path}: {exc}") from exc

    sheet = book.sheet_by_index(0)
    rows: list[Row] = []
    for r in range(sheet.nrows):
        row: Row = []
        for cell in sheet.row(r):
            if cell.ctype == xlrd.XL_CELL_DATE:
                row.append(cell_text(xlrd.xldate_as_datetime(cell.value, book.datemode)))
            elif cell.ctype == xlrd.XL_CELL_BOOLEAN:
                row.append(cell_text(bool(cell.value)))
            elif cell.ctype == xlrd.XL_CELL_ERROR:
                row.append(xlrd.error_text_from_code.get(cell.value, ""))
            else:
                row.append(cell_text(cell.value))
        rows.append(row)
    return _trim_grid(rows)


def load_grid(path: Path) -> Grid:
    """Load the first sheet of a workbook as rows of display text.

    Row 1 of the sheet is element 0 of the result, even when it is empty.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    FormatError
        If the extension is not supported or the workbook cannot be decoded.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Input file not found: {path}")
    if path.is_dir():
        raise FormatError(f"Input path is a directory, not a file: {path}")

    suffix = path.suffix.lower()
    if suffix in OPENPYXL_SUFFIXES:
        return _load_openpyxl(path)
    if suffix == ".xls":
        return _load_xlrd(path)
    raise FormatError(
        f"Unsupported file type: {suffix or path.name!r} ({path.name}). Use .xlsx or .xls"
    )


# ── Writing ──────────────────────────────────────────────────────


def check_output_path(path: Path) -> Path:
    """Reject output paths the writer cannot produce."""
    path = Path(path)
    if path.suffix.lower() not in OUTPUT_SUFFIXES:
        raise FormatError(
            f"Unsupported output type: {path.suffix or path.name!r}. Use .xlsx"
        )
    if path.is_dir():
        raise FormatError(f"Output path is a directory: {path}")
    return path


def save_grid(path: Path, rows: Sequence[Sequence[str]]) -> Path:
    """Write *rows* to a single-sheet workbook at *path* (atomic)."""
    path = check_output_path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    wb = Workbook()
    ws = wb.active
    if ws is None:
        ws = wb.create_sheet()
    ws.title = OUTPUT_SHEET
    for r_idx, row in enumerate(rows, 1):
        for c_idx, value in enumerate(row, 1):
            if value == "":
                continue
            cell = ws.cell(row=r_idx, column=c_idx, value=value)
            # Text such as "=SUM(A1)" stays text.
            cell.data_type = "s"

    tmp_path = path.with_name(f"{path.stem}.tmp{path.suffix}")
    try:
        wb.save(tmp_path)
    except Exception:
        tmp_path.unlink(missing_ok=True)
        raise
    tmp_path.replace(path)
    return path


def _json_default(obj: Any) -> Any:
    if isinstance(obj, Path):
        return str(obj)
    if isinstance(obj, (datetime, date)):
        return obj.isoformat()
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def write_json(path: Path, data: Any) -> Path:
    """Write *data* as pretty-printed JSON to *path* (atomic + deterministic)."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    payload = json.dumps(
        data,
        indent=2,
        sort_keys=True,
        ensure_ascii=False,
        default=_json_default,
    ) + "\n"
    tmp_path = path.with_suffix(path.suffix + ".tmp")
    tmp_path.write_text(payload, encoding="utf-8")
    tmp_path.replace(path)
    return path
