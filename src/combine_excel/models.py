"""Data models shared by the pipeline, the codec and the CLI."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from numbers import Integral
from typing import Any

from combine_excel.utils import utcnow_iso

Row = list[str]
Grid = list[Row]


def _to_non_negative_int(value: Any, field_name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, Integral):
        raise TypeError(f"{field_name} must be an integer")
    result = int(value)
    if result < 0:
        raise ValueError(f"{field_name} must be >= 0")
    return result


def _to_index_list(values: Sequence[Any] | None, field_name: str) -> list[int]:
    if values is None:
        return []
    return [_to_non_negative_int(item, f"{field_name} items") for item in values]


@dataclass
class ColumnSelection:
    """Selected source column indices, in first-discovery order.

    Once an index is added its display name and output position never
    change. Identity is the column index, not the header text: two files
    that put different headers at the same index share one output column.
    """

    order: list[int] = field(default_factory=list)
    names: dict[int, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.order)

    def __contains__(self, index: object) -> bool:
        return index in self.names

    def add(self, index: int, name: str) -> bool:
        """Record *index* under *name* unless it is already selected."""
        if index in self.names:
            return False
        self.names[index] = name
        self.order.append(index)
        return True

    def copy(self) -> ColumnSelection:
        return ColumnSelection(order=list(self.order), names=dict(self.names))

    def header(self) -> Row:
        return [self.names[idx] for idx in self.order]


@dataclass
class FileStats:
    """Per-file counters collected during a run.

    Contract invariant: ``blank_rows == rows_in - rows_out``.
    """

    name: str
    rows_in: int = 0
    rows_out: int = 0
    blank_rows: int = 0
    matched_columns: list[int] = field(default_factory=list)
    new_columns: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        self.blank_rows = _to_non_negative_int(self.blank_rows, "blank_rows")
        self.matched_columns = _to_index_list(self.matched_columns, "matched_columns")
        self.new_columns = _to_index_list(self.new_columns, "new_columns")
        if self.rows_out > self.rows_in:
            raise ValueError("rows_out must be <= rows_in")
        if self.blank_rows != self.rows_in - self.rows_out:
            raise ValueError("blank_rows must equal rows_in - rows_out")

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "blank_rows": self.blank_rows,
            "matched_columns": list(self.matched_columns),
            "new_columns": list(self.new_columns),
        }


@dataclass
class CombineReport:
    """Run-level summary: one :class:`FileStats` per processed file."""

    files: list[FileStats] = field(default_factory=list)

    @property
    def rows_in(self) -> int:
        return sum(f.rows_in for f in self.files)

    @property
    def rows_out(self) -> int:
        return sum(f.rows_out for f in self.files)

    @property
    def blank_rows(self) -> int:
        return sum(f.blank_rows for f in self.files)

    def to_dict(self) -> dict[str, Any]:
        return {
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "blank_rows": self.blank_rows,
            "files": [f.to_dict() for f in self.files],
        }


@dataclass
class CombineResult:
    selection: ColumnSelection
    rows: Grid
    report: CombineReport

    @property
    def header(self) -> Row:
        return self.selection.header()

    def to_grid(self) -> Grid:
        """Header row followed by every data row padded to the full width.

        Rows collected before a column was discovered are shorter than the
        final header; the missing trailing cells become empty text.
        """
        width = len(self.selection)
        grid: Grid = [self.header]
        for row in self.rows:
            grid.append(row + [""] * (width - len(row)))
        return grid


@dataclass
class RunManifest:
    """Audit-trail manifest for a single combine run."""

    tool: str = "combine-excel"
    version: str = ""
    input_dir: str = ""
    output_path: str = ""
    keywords: list[str] = field(default_factory=list)
    header_row: int = 0
    created_at_utc: str = field(default_factory=utcnow_iso)
    columns: list[str] = field(default_factory=list)
    rows_in: int = 0
    rows_out: int = 0
    files: list[dict[str, Any]] = field(default_factory=list)
    status: str = "success"
    error_message: str = ""

    def __post_init__(self) -> None:
        self.rows_in = _to_non_negative_int(self.rows_in, "rows_in")
        self.rows_out = _to_non_negative_int(self.rows_out, "rows_out")
        if self.status not in {"success", "failed"}:
            raise ValueError(f"status must be 'success' or 'failed', got {self.status!r}")

    def to_dict(self) -> dict[str, Any]:
        return {
            "tool": self.tool,
            "version": self.version,
            "input_dir": self.input_dir,
            "output_path": self.output_path,
            "keywords": list(self.keywords),
            "header_row": self.header_row,
            "created_at_utc": self.created_at_utc,
            "columns": list(self.columns),
            "rows_in": self.rows_in,
            "rows_out": self.rows_out,
            "files": [dict(f) for f in self.files],
            "status": self.status,
            "error_message": self.error_message,
        }
