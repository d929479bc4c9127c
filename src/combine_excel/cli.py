"""CLI entry point for combine-excel."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path
from typing import NoReturn

import typer
from openpyxl.utils import get_column_letter
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table as RichTable

from combine_excel import DEFAULT_HEADER_ROW, __version__
from combine_excel.errors import CombineError
from combine_excel.io import (
    check_output_path,
    list_input_files,
    load_grid,
    save_grid,
    write_json,
)
from combine_excel.models import CombineResult, Grid, RunManifest
from combine_excel.pipeline import combine_grids
from combine_excel.utils import sha256_file, utcnow_iso

app = typer.Typer(
    name="combine-excel",
    help="combine-excel — Merge keyword-matched columns from a folder of spreadsheets.",
    add_completion=False,
)
console = Console()

RUN_USAGE = "Usage: combine-excel run -i <inputDir> -o <outputFile.xlsx> -k <keywords> -r <row_number>"
PREVIEW_USAGE = "Usage: combine-excel preview -i <inputDir> -k <keywords> -r <row_number>"


def _noop(*_args: object, **_kwargs: object) -> None:
    return None


def _printer(quiet: bool) -> Callable[..., None]:
    return _noop if quiet else console.print


def _err(msg: str) -> None:
    console.print(f"[red]x[/red] {escape(msg)}", highlight=False, soft_wrap=True)


def _usage_exit(usage: str) -> NoReturn:
    console.print(usage, markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(code=1)


# ── Helpers ──────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"combine-excel v{__version__}")
        raise typer.Exit()


def parse_keywords(raw: str | None) -> list[str]:
    """Split a comma-separated keyword list, dropping empty fragments.

    Fragments are otherwise kept verbatim; whitespace is only collapsed at
    match time.
    """
    if not raw:
        return []
    return [kw for kw in raw.split(",") if kw != ""]


def _iter_grids(input_dir: Path, echo: Callable[..., None]) -> Iterator[tuple[str, Grid]]:
    for path in list_input_files(input_dir):
        echo(f"Processing file: {path}", markup=False, highlight=False, soft_wrap=True)
        yield path.name, load_grid(path)


def _file_digests(input_dir: Path, result: CombineResult | None) -> list[dict[str, object]]:
    if result is None:
        return []
    files: list[dict[str, object]] = []
    for stats in result.report.files:
        entry: dict[str, object] = stats.to_dict()
        entry["sha256"] = sha256_file(input_dir / stats.name)
        files.append(entry)
    return files


def _write_manifest(
    manifest_path: Path,
    *,
    input_dir: Path,
    output: Path,
    keywords: list[str],
    header_row: int,
    created_at: str,
    result: CombineResult | None,
    error_message: str = "",
) -> Path:
    manifest = RunManifest(
        version=__version__,
        input_dir=str(input_dir.resolve()),
        output_path=str(output.resolve()),
        keywords=keywords,
        header_row=header_row,
        created_at_utc=created_at,
        columns=result.header if result else [],
        rows_in=result.report.rows_in if result else 0,
        rows_out=result.report.rows_out if result else 0,
        files=_file_digests(input_dir, result),
        status="failed" if error_message else "success",
        error_message=error_message,
    )
    return write_json(manifest_path, manifest.to_dict())


def _selection_table(result: CombineResult) -> RichTable:
    tbl = RichTable(title="Selected Columns", show_lines=False)
    tbl.add_column("#", justify="right")
    tbl.add_column("Source column")
    tbl.add_column("Header", style="bold")
    for pos, idx in enumerate(result.selection.order, 1):
        tbl.add_row(str(pos), get_column_letter(idx + 1), escape(result.selection.names[idx]))
    return tbl


def _files_table(result: CombineResult) -> RichTable:
    tbl = RichTable(title="Files", show_lines=False)
    tbl.add_column("File")
    tbl.add_column("Matched", justify="right")
    tbl.add_column("New", justify="right")
    tbl.add_column("Rows in", justify="right")
    tbl.add_column("Blank", justify="right")
    tbl.add_column("Rows out", justify="right")
    for stats in result.report.files:
        tbl.add_row(
            escape(stats.name),
            str(len(stats.matched_columns)),
            str(len(stats.new_columns)),
            str(stats.rows_in),
            str(stats.blank_rows),
            str(stats.rows_out),
        )
    return tbl


# ── Callbacks ────────────────────────────────────────────────────


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """combine-excel CLI."""
    if ctx.invoked_subcommand is None:
        _usage_exit(RUN_USAGE)


# ── run command ──────────────────────────────────────────────────


@app.command()
def run(
    input_dir: Path | None = typer.Option(
        None, "--input-dir", "-i",
        help="Directory containing input Excel files.",
    ),
    output: Path | None = typer.Option(
        None, "--output", "-o",
        help="Path to the output Excel file.",
    ),
    keywords: str | None = typer.Option(
        None, "--keywords", "-k",
        help="Comma-separated list of keywords to filter columns.",
    ),
    header_row: int = typer.Option(
        DEFAULT_HEADER_ROW, "--row", "-r",
        help="Row number where the keyword line is located (1-based).",
    ),
    manifest: Path | None = typer.Option(
        None, "--manifest",
        help="Also write a JSON run manifest to this path.",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress per-file progress output.",
    ),
) -> None:
    """Combine keyword-matched columns of every file into one workbook."""
    keyword_list = parse_keywords(keywords)
    if input_dir is None or output is None or not keyword_list:
        _usage_exit(RUN_USAGE)

    echo = _printer(quiet)
    created_at = utcnow_iso()
    result: CombineResult | None = None

    if not quiet:
        console.print(Panel(
            f"[bold]combine-excel[/bold] v{__version__}\n"
            f"Input:    {escape(str(input_dir))}\nOutput:   {escape(str(output))}\n"
            f"Keywords: {escape(', '.join(keyword_list))}\nHeader row: {header_row}",
            title="Combine Start", border_style="blue",
        ))

    try:
        check_output_path(output)
        combined = combine_grids(_iter_grids(input_dir, echo), keyword_list, header_row)
        result = combined
        out_path = save_grid(output, combined.to_grid())
    except (OSError, CombineError) as exc:
        _fail(str(exc), manifest, input_dir, output, keyword_list, header_row, created_at, result)
    except Exception as exc:
        _fail(
            f"Unexpected internal error: {exc}",
            manifest, input_dir, output, keyword_list, header_row, created_at, result,
        )

    if manifest:
        try:
            manifest_path = _write_manifest(
                manifest,
                input_dir=input_dir,
                output=output,
                keywords=keyword_list,
                header_row=header_row,
                created_at=created_at,
                result=combined,
            )
        except OSError as exc:
            _err(f"Could not write manifest {manifest}: {exc}")
            raise typer.Exit(code=1)
        echo(f"  Manifest -> {manifest_path}", markup=False, highlight=False, soft_wrap=True)

    if not quiet:
        console.print(Panel(
            f"[green]Done[/green] — {len(combined.selection)} columns, "
            f"{combined.report.rows_out} rows -> {escape(str(out_path))}",
            title="Combine Complete", border_style="green",
        ))
    console.print("Process complete")


def _fail(
    message: str,
    manifest: Path | None,
    input_dir: Path,
    output: Path,
    keywords: list[str],
    header_row: int,
    created_at: str,
    result: CombineResult | None,
) -> NoReturn:
    _err(f"Error: {message}")
    if manifest:
        try:
            manifest_path = _write_manifest(
                manifest,
                input_dir=input_dir,
                output=output,
                keywords=keywords,
                header_row=header_row,
                created_at=created_at,
                result=result,
                error_message=message,
            )
        except OSError as exc:
            _err(f"Could not write manifest {manifest}: {exc}")
        else:
            console.print(f"  Manifest -> {manifest_path}", markup=False, highlight=False, soft_wrap=True)
    raise typer.Exit(code=1)


# ── preview command ──────────────────────────────────────────────


@app.command()
def preview(
    input_dir: Path | None = typer.Option(
        None, "--input-dir", "-i",
        help="Directory containing input Excel files.",
    ),
    keywords: str | None = typer.Option(
        None, "--keywords", "-k",
        help="Comma-separated list of keywords to filter columns.",
    ),
    header_row: int = typer.Option(
        DEFAULT_HEADER_ROW, "--row", "-r",
        help="Row number where the keyword line is located (1-based).",
    ),
    quiet: bool = typer.Option(
        False, "--quiet", "-q",
        help="Suppress per-file progress output.",
    ),
) -> None:
    """Show which columns would be combined, without writing anything.

    Exit 0 = at least one column selected, exit 1 = any failure.
    """
    keyword_list = parse_keywords(keywords)
    if input_dir is None or not keyword_list:
        _usage_exit(PREVIEW_USAGE)

    echo = _printer(quiet)
    try:
        result = combine_grids(_iter_grids(input_dir, echo), keyword_list, header_row)
    except (OSError, CombineError) as exc:
        _err(f"Error: {exc}")
        raise typer.Exit(code=1)
    except Exception as exc:
        _err(f"Error: Unexpected internal error: {exc}")
        raise typer.Exit(code=1)

    console.print(_selection_table(result))
    if not quiet:
        console.print(_files_table(result))
    console.print(
        f"{len(result.selection)} columns, {result.report.rows_out} rows "
        f"({result.report.blank_rows} blank rows skipped)"
    )
