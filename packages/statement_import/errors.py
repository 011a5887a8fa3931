"""Exception types raised by the import pipeline.

Only :class:`MissingMappingError` and :class:`ImportFailedError` reach callers
of the pipeline. Rate and duplicate-check failures are caught inside their
stages and turned into degraded (annotated) results.
"""

from __future__ import annotations


class StatementImportError(Exception):
    """Base class for all package errors."""


class MissingMappingError(StatementImportError, ValueError):
    """A column required for the active transaction kind has no mapping."""

    def __init__(self, missing: list[str], kind: str) -> None:
        self.missing = list(missing)
        self.kind = kind
        cols = ", ".join(self.missing)
        super().__init__(f"Missing required column mapping for {kind}: {cols}")


class RateLookupError(StatementImportError):
    """A historical exchange rate could not be obtained."""


class DuplicateCheckError(StatementImportError):
    """The duplicate-detection service failed or answered unusably."""


class ImportSinkError(StatementImportError):
    """The import sink rejected or failed to store a batch."""


class ImportFailedError(StatementImportError):
    """Committing the reviewed selection failed; review state is kept."""


__all__ = [
    "StatementImportError",
    "MissingMappingError",
    "RateLookupError",
    "DuplicateCheckError",
    "ImportSinkError",
    "ImportFailedError",
]
