"""combine-excel — Merge keyword-matched columns from a folder of spreadsheets."""

__version__ = "0.1.0"

DEFAULT_HEADER_ROW: int = 5
