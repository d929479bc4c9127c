"""Error taxonomy shared by the pipeline, the codec and the CLI."""

from __future__ import annotations


class CombineError(Exception):
    """Base class for failures that abort a combine run."""


class ConfigError(CombineError, ValueError):
    """The configured header row does not exist in an input file."""


class EmptyResultError(CombineError):
    """No header cell in any input file matched any keyword."""


class FormatError(CombineError, ValueError):
    """A file could not be decoded as a supported spreadsheet."""
