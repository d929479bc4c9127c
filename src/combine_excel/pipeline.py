"""Column selection + row collection pipeline — pure functions, no I/O."""

from __future__ import annotations

import re
from collections.abc import Iterable, Sequence

from combine_excel.errors import ConfigError, EmptyResultError
from combine_excel.models import (
    ColumnSelection,
    CombineReport,
    CombineResult,
    FileStats,
    Grid,
    Row,
)

# ── Text normalisation ──────────────────────────────────────────

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_whitespace(text: str) -> str:
    """Collapse every run of whitespace in *text* to a single space.

    Leading and trailing runs become one space as well; nothing is trimmed.
    """
    return _WHITESPACE_RE.sub(" ", text)


def contains_keyword(value: str, keyword: str) -> bool:
    """Case-sensitive substring test after whitespace normalisation."""
    return normalize_whitespace(keyword) in normalize_whitespace(value)


# ── Column selection ────────────────────────────────────────────


def header_cells(rows: Sequence[Row], header_row: int, source: str = "") -> Row:
    """Return the 1-based *header_row* of *rows*.

    Raises
    ------
    ConfigError
        If *header_row* is below 1 or past the last row of the file.
    """
    if header_row < 1 or header_row > len(rows):
        where = f" in {source}" if source else ""
        raise ConfigError(
            f"Header row {header_row} is out of range{where} "
            f"(file has {len(rows)} rows)"
        )
    return list(rows[header_row - 1])


def select_columns(
    header: Sequence[str],
    keywords: Sequence[str],
    selection: ColumnSelection,
) -> tuple[ColumnSelection, list[int]]:
    """Merge the keyword-matching columns of *header* into *selection*.

    Returns ``(updated_selection, matched_indices)``. The input selection is
    left untouched; indices already present keep their name and position.
    """
    updated = selection.copy()
    matched: list[int] = []
    for idx, cell in enumerate(header):
        if any(contains_keyword(cell, kw) for kw in keywords):
            matched.append(idx)
            updated.add(idx, normalize_whitespace(cell))
    return updated, matched


# ── Row collection ──────────────────────────────────────────────


def is_blank_row(row: Sequence[str]) -> bool:
    return all(cell == "" for cell in row)


def collect_rows(rows: Iterable[Sequence[str]], order: Sequence[int]) -> tuple[Grid, int]:
    """Slice each non-blank row of *rows* down to the columns in *order*.

    Returns ``(collected_rows, blank_row_count)``. Cells past the end of a
    short source row come out as empty text.
    """
    collected: Grid = []
    blanks = 0
    for row in rows:
        if is_blank_row(row):
            blanks += 1
            continue
        width = len(row)
        collected.append([row[idx] if idx < width else "" for idx in order])
    return collected, blanks


# ── Combiner ────────────────────────────────────────────────────


def combine_grids(
    named_grids: Iterable[tuple[str, Sequence[Row]]],
    keywords: Sequence[str],
    header_row: int,
) -> CombineResult:
    """Combine every ``(name, rows)`` pair of *named_grids* into one result.

    Files are consumed one at a time. Each file's header extends the running
    selection before that file's rows are collected, so a column discovered
    late contributes nothing for earlier files (their rows are padded with
    empty cells by :meth:`CombineResult.to_grid`).

    Raises
    ------
    ConfigError
        If a file has no row at *header_row*.
    EmptyResultError
        If no column of any file matched any keyword.
    """
    selection = ColumnSelection()
    data_rows: Grid = []
    report = CombineReport()

    for name, rows in named_grids:
        header = header_cells(rows, header_row, name)
        before = set(selection.order)
        selection, matched = select_columns(header, keywords, selection)

        body = rows[header_row:]
        collected, blanks = collect_rows(body, selection.order)
        data_rows.extend(collected)

        report.files.append(FileStats(
            name=name,
            rows_in=len(body),
            rows_out=len(collected),
            blank_rows=blanks,
            matched_columns=matched,
            new_columns=[idx for idx in selection.order if idx not in before],
        ))

    if not selection:
        raise EmptyResultError("No columns match the specified keywords")

    return CombineResult(selection=selection, rows=data_rows, report=report)
