"""Review step: select, edit, and commit reconciled transactions.

A :class:`ReviewSession` owns the list produced by the pipeline. Duplicates
enter the session unselected and stay that way: they cannot be toggled, are
skipped by :meth:`ReviewSession.toggle_all`, and an edit never re-selects
them. Only the selected non-duplicate subset is handed to the sink.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from .errors import ImportFailedError
from .logging_setup import get_logger
from .models import Jar, Transaction, TransactionKind

_logger = get_logger("statement_import.review")


@dataclass(frozen=True, slots=True)
class ReviewCounts:
    total: int
    selected: int
    duplicates: int


def _coerce_amount(value: Any) -> Decimal:
    if isinstance(value, bool):
        raise ValueError(f"invalid amount: {value!r}")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"invalid amount: {value!r}") from e
    if not amount.is_finite() or amount <= 0:
        raise ValueError(f"invalid amount: {value!r}")
    return amount


def _coerce_text(value: Any) -> str:
    if value is None:
        raise ValueError("field value must not be None")
    return str(value)


def _coerce_jar(value: Any) -> Jar:
    jar = Jar.parse(value)
    if jar is None:
        raise ValueError(f"unknown jar: {value!r}")
    return jar


_COERCERS: dict[str, Callable[[Any], Any]] = {
    "amount": _coerce_amount,
    "suggested_jar": _coerce_jar,
}


class ReviewSession:
    """Mutable review state for one prepared batch.

    Parameters
    ----------
    transactions:
        Reconciled transactions with ``selected`` already derived.
    kind:
        The transaction kind shared by every element.
    """

    def __init__(self, transactions: Sequence[Transaction], kind: TransactionKind | str) -> None:
        self.kind = TransactionKind(kind)
        self.transactions: list[Transaction] = list(transactions)
        self.committed = False
        for tx in self.transactions:
            if tx.is_duplicate:
                tx.selected = False

    def __len__(self) -> int:
        return len(self.transactions)

    def toggle(self, index: int) -> bool:
        """Flip selection of one transaction and return its new state.

        Duplicates are left unselected and ``False`` is returned.
        """

        tx = self.transactions[index]
        if tx.is_duplicate:
            return False
        tx.selected = not tx.selected
        return tx.selected

    def toggle_all(self) -> None:
        candidates = [t for t in self.transactions if not t.is_duplicate]
        all_selected = all(t.selected for t in candidates)
        for tx in candidates:
            tx.selected = not all_selected

    def edit(self, index: int, **fields: Any) -> Transaction:
        """Overwrite editable fields of one transaction.

        Field names follow the variant's ``editable_fields``; anything else
        raises ``ValueError`` and leaves the transaction untouched.
        So do ``None`` values and amounts that are not positive.
        """

        tx = self.transactions[index]
        unknown = sorted(set(fields) - set(tx.editable_fields))
        if unknown:
            raise ValueError(f"cannot edit {', '.join(unknown)} on a {tx.kind} transaction")

        coerced = {
            name: _COERCERS.get(name, _coerce_text)(value) for name, value in fields.items()
        }
        for name, value in coerced.items():
            setattr(tx, name, value)
        if tx.is_duplicate:
            tx.selected = False
        return tx

    def selected(self) -> list[Transaction]:
        return [t for t in self.transactions if t.selected and not t.is_duplicate]

    def counts(self) -> ReviewCounts:
        return ReviewCounts(
            total=len(self.transactions),
            selected=len(self.selected()),
            duplicates=sum(1 for t in self.transactions if t.is_duplicate),
        )

    def commit(self, sink: Callable[[Sequence[Transaction], TransactionKind], None]) -> int:
        """Send the selection to ``sink`` once and return how many were sent.

        An empty selection does nothing and returns ``0``. A sink failure is
        re-raised as :class:`ImportFailedError`; selections and edits are kept
        so the caller can retry.
        """

        if self.committed:
            raise RuntimeError("review session already committed")

        chosen = self.selected()
        if not chosen:
            _logger.info("review:commit_skipped reason=empty_selection")
            return 0

        try:
            sink(chosen, self.kind)
        except Exception as e:
            _logger.warning("review:commit_failed count=%d error=%s", len(chosen), e)
            raise ImportFailedError(f"import failed: {e}") from e

        self.committed = True
        _logger.info("review:committed kind=%s count=%d", self.kind, len(chosen))
        return len(chosen)


__all__ = ["ReviewCounts", "ReviewSession"]
