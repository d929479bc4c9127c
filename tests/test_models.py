from __future__ import annotations

import pytest

from combine_excel.models import (
    ColumnSelection,
    CombineReport,
    CombineResult,
    FileStats,
    RunManifest,
)


def test_column_selection_add_is_first_wins() -> None:
    selection = ColumnSelection()

    assert selection.add(3, "Score") is True
    assert selection.add(0, "Name") is True
    assert selection.add(3, "Other") is False

    assert selection.order == [3, 0]
    assert selection.header() == ["Score", "Name"]
    assert 3 in selection
    assert 1 not in selection
    assert len(selection) == 2


def test_column_selection_copy_is_independent() -> None:
    selection = ColumnSelection()
    selection.add(1, "Score")

    clone = selection.copy()
    clone.add(2, "Amount")

    assert selection.order == [1]
    assert selection.names == {1: "Score"}


def test_empty_column_selection_is_falsy() -> None:
    assert not ColumnSelection()


def test_file_stats_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="rows_in"):
        FileStats(name="a.xlsx", rows_in=-1)

    with pytest.raises(ValueError, match="blank_rows"):
        FileStats(name="a.xlsx", blank_rows=-1)


def test_file_stats_rejects_inconsistent_counts() -> None:
    with pytest.raises(ValueError, match="rows_out"):
        FileStats(name="a.xlsx", rows_in=1, rows_out=2)

    with pytest.raises(ValueError, match="blank_rows"):
        FileStats(name="a.xlsx", rows_in=5, rows_out=4, blank_rows=0)


def test_file_stats_rejects_non_integer_indices() -> None:
    with pytest.raises(TypeError, match="matched_columns"):
        FileStats(name="a.xlsx", matched_columns=["1"])  # type: ignore[list-item]

    with pytest.raises(TypeError, match="rows_in"):
        FileStats(name="a.xlsx", rows_in=True)  # type: ignore[arg-type]


def test_file_stats_to_dict_returns_list_copies() -> None:
    stats = FileStats(name="a.xlsx", rows_in=2, rows_out=1, blank_rows=1, matched_columns=[1])

    payload = stats.to_dict()
    payload["matched_columns"].append(9)

    assert stats.matched_columns == [1]


def test_combine_report_sums_file_counts() -> None:
    report = CombineReport(files=[
        FileStats(name="a.xlsx", rows_in=3, rows_out=2, blank_rows=1),
        FileStats(name="b.xlsx", rows_in=4, rows_out=4, blank_rows=0),
    ])

    assert (report.rows_in, report.rows_out, report.blank_rows) == (7, 6, 1)
    assert [f["name"] for f in report.to_dict()["files"]] == ["a.xlsx", "b.xlsx"]


def test_combine_result_to_grid_pads_short_rows() -> None:
    selection = ColumnSelection()
    selection.add(1, "Score")
    selection.add(0, "Amount")
    result = CombineResult(selection=selection, rows=[["42"], ["88", "9.50"]], report=CombineReport())

    assert result.to_grid() == [["Score", "Amount"], ["42", ""], ["88", "9.50"]]
    assert result.rows == [["42"], ["88", "9.50"]]


def test_run_manifest_rejects_unknown_status() -> None:
    with pytest.raises(ValueError, match="status"):
        RunManifest(status="partial")


def test_run_manifest_rejects_negative_counts() -> None:
    with pytest.raises(ValueError, match="rows_out"):
        RunManifest(rows_out=-2)


def test_run_manifest_to_dict_has_timestamp_and_copies() -> None:
    manifest = RunManifest(keywords=["Score"], columns=["Score"])

    payload = manifest.to_dict()
    payload["keywords"].append("Amount")

    assert manifest.keywords == ["Score"]
    assert payload["tool"] == "combine-excel"
    assert payload["created_at_utc"]
    assert payload["status"] == "success"
