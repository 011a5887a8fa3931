"""Duplicate reconciliation against an external duplicate-detection service.

The whole batch is submitted in one request together with the transaction
kind. Verdicts (``isDuplicate`` / ``duplicateNote``) are written back onto
the original records by position.

Fail-open policy: when the detector is not configured, unreachable, answers
non-2xx, or returns an unusable body, every transaction is marked
``is_duplicate=False`` so the import is never blocked by detector downtime.
A well-formed response without a ``transactions`` array leaves the records
unannotated.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any, Protocol

import httpx
from pydantic import ValidationError

from .config import DEFAULT_HTTP_TIMEOUT
from .errors import DuplicateCheckError
from .logging_setup import get_logger
from .models import DuplicateCheckResponse, Transaction, TransactionKind

_logger = get_logger("statement_import.duplicates")


class DuplicateDetector(Protocol):
    def check(
        self, transactions: list[dict[str, Any]], kind: TransactionKind
    ) -> DuplicateCheckResponse:
        """Return annotated transactions; raise ``DuplicateCheckError`` on failure."""
        ...


class HttpDuplicateDetector:
    """``POST {"transactions": [...], "type": kind}`` to the detector endpoint."""

    def __init__(
        self,
        url: str,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.Client | None = None,
    ) -> None:
        self._url = url
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> HttpDuplicateDetector:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def check(
        self, transactions: list[dict[str, Any]], kind: TransactionKind
    ) -> DuplicateCheckResponse:
        try:
            resp = self._client.post(
                self._url, json={"transactions": transactions, "type": str(kind)}
            )
        except httpx.HTTPError as e:
            raise DuplicateCheckError(f"duplicate check request failed: {e}") from e
        if not resp.is_success:
            raise DuplicateCheckError(f"duplicate check returned {resp.status_code}")
        try:
            return DuplicateCheckResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise DuplicateCheckError("duplicate check returned an unexpected body") from e


def _mark_not_duplicate(transactions: Iterable[Transaction]) -> None:
    for tx in transactions:
        tx.is_duplicate = False
        tx.duplicate_note = None


def derive_selection(transactions: Iterable[Transaction]) -> None:
    """Select every transaction that is not a duplicate."""

    for tx in transactions:
        tx.selected = not tx.is_duplicate


class DuplicateReconciler:
    """Merge detector verdicts into a batch of transactions."""

    def __init__(self, detector: DuplicateDetector | None) -> None:
        self._detector = detector

    def reconcile(
        self, transactions: Sequence[Transaction], kind: TransactionKind | str
    ) -> list[Transaction]:
        kind = TransactionKind(kind)
        batch = list(transactions)
        if not batch:
            return batch

        if self._detector is None:
            _logger.warning("dedupe:skipped reason=no_detector count=%d", len(batch))
            _mark_not_duplicate(batch)
            return batch

        try:
            response = self._detector.check([tx.to_payload() for tx in batch], kind)
        except DuplicateCheckError as e:
            _logger.warning("dedupe:failed count=%d error=%s", len(batch), e)
            _mark_not_duplicate(batch)
            return batch

        if response.transactions is None:
            _logger.info("dedupe:no_verdicts count=%d", len(batch))
            return batch

        if len(response.transactions) != len(batch):
            _logger.warning(
                "dedupe:misaligned sent=%d received=%d",
                len(batch),
                len(response.transactions),
            )
            _mark_not_duplicate(batch)
            return batch

        for tx, verdict in zip(batch, response.transactions, strict=True):
            tx.is_duplicate = verdict.is_duplicate
            tx.duplicate_note = verdict.duplicate_note

        _logger.info(
            "dedupe:done count=%d duplicates=%d",
            len(batch),
            sum(1 for t in batch if t.is_duplicate),
        )
        return batch


__all__ = [
    "DuplicateDetector",
    "DuplicateReconciler",
    "HttpDuplicateDetector",
    "derive_selection",
]
