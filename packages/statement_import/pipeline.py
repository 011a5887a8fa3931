"""Orchestration: analyzer output -> review session.

Stages run strictly one after another::

    transform -> convert to EUR -> duplicate check -> derive selection

Only the conversion stage fans out (bounded by the converter's
``concurrency``); the duplicate check is a single batched request.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence

from .categorize import AutoRule
from .currency import CurrencyConverter
from .duplicates import DuplicateReconciler, derive_selection
from .logging_setup import get_logger
from .models import ColumnMapping, FileStructure, RawRow, TransactionKind
from .review import ReviewSession
from .transform import TransformReport, transform_rows_with_report

_logger = get_logger("statement_import.pipeline")


def prepare_review_with_report(
    source: FileStructure | Iterable[RawRow | Mapping[str, object]],
    mappings: Sequence[ColumnMapping] | None,
    account: str | None,
    kind: TransactionKind | str,
    *,
    converter: CurrencyConverter | None = None,
    reconciler: DuplicateReconciler | None = None,
    rules: Sequence[AutoRule] = (),
) -> tuple[ReviewSession, TransformReport]:
    """Run every stage and return the review session plus transform diagnostics.

    Parameters
    ----------
    source:
        A :class:`FileStructure` from the analyzer, or its rows directly.
    mappings:
        Column mappings after user edits. ``None`` uses the analyzer's
        ``suggested_mappings`` (only valid when ``source`` is a structure).
    converter:
        When ``None`` amounts are kept in their parsed currency.
    reconciler:
        When ``None`` the duplicate check fails open (nothing is a duplicate).

    Raises
    ------
    MissingMappingError
        Before any row is processed, when a required target is unmapped.
    """

    kind = TransactionKind(kind)
    if isinstance(source, FileStructure):
        rows: Iterable[RawRow | Mapping[str, object]] = source.raw_rows()
        if mappings is None:
            mappings = source.suggested_mappings
    else:
        rows = source
    if mappings is None:
        raise ValueError("mappings are required when raw rows are passed directly")

    transactions, report = transform_rows_with_report(
        rows, mappings, account, kind, rules=rules
    )

    if converter is not None:
        transactions = converter.convert_all(transactions)
    else:
        _logger.info("pipeline:conversion_skipped count=%d", len(transactions))

    transactions = (reconciler or DuplicateReconciler(None)).reconcile(transactions, kind)
    derive_selection(transactions)

    session = ReviewSession(transactions, kind)
    counts = session.counts()
    _logger.info(
        "pipeline:ready kind=%s total=%d selected=%d duplicates=%d",
        kind,
        counts.total,
        counts.selected,
        counts.duplicates,
    )
    return session, report


def prepare_review(
    source: FileStructure | Iterable[RawRow | Mapping[str, object]],
    mappings: Sequence[ColumnMapping] | None,
    account: str | None,
    kind: TransactionKind | str,
    *,
    converter: CurrencyConverter | None = None,
    reconciler: DuplicateReconciler | None = None,
    rules: Sequence[AutoRule] = (),
) -> ReviewSession:
    """Run transform, conversion and duplicate reconciliation for review."""

    session, _report = prepare_review_with_report(
        source,
        mappings,
        account,
        kind,
        converter=converter,
        reconciler=reconciler,
        rules=rules,
    )
    return session


__all__ = ["prepare_review", "prepare_review_with_report"]
