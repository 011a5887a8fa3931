"""Raw rows + column mapping -> spending or revenue transactions.

Public API:
    - :func:`transform_rows`: the transactions only (silent-drop policy).
    - :func:`transform_rows_with_report`: the same plus a
      :class:`TransformReport` listing which rows were dropped and why.

Mapping validation happens before any row is read: a missing required target
raises :class:`~statement_import.errors.MissingMappingError` and nothing is
produced. Per-row problems are never errors; a row without a usable date,
with a non-positive amount, or without a label is dropped.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Protocol

from .amounts import ParsedAmount, parse_amount
from .categorize import AutoRule, classify, match_auto_rule
from .dates import normalize_date
from .errors import MissingMappingError
from .logging_setup import get_logger
from .mappings import (
    ACCOUNT_TARGETS,
    CURRENCY_TARGETS,
    DESCRIPTION_TARGETS,
    amount_target,
    find_mapping,
    missing_required_targets,
)
from .models import (
    FALLBACK_LABEL,
    ColumnMapping,
    Jar,
    RawRow,
    RevenueTransaction,
    SpendingTransaction,
    Target,
    Transaction,
    TransactionKind,
)

_logger = get_logger("statement_import.transform")

# Drop reasons
EMPTY_DATE = "empty_date"
NON_POSITIVE_AMOUNT = "non_positive_amount"
EMPTY_LABEL = "empty_label"


@dataclass(frozen=True, slots=True)
class DroppedRow:
    index: int
    reason: str


@dataclass(slots=True)
class TransformReport:
    """Diagnostics for one transform run."""

    total_rows: int = 0
    dropped: list[DroppedRow] = field(default_factory=list)

    @property
    def kept(self) -> int:
        return self.total_rows - len(self.dropped)

    def counts_by_reason(self) -> dict[str, int]:
        return dict(Counter(d.reason for d in self.dropped))


@dataclass(frozen=True, slots=True)
class _Columns:
    """Source column chosen for each target (``None`` when unmapped)."""

    date: str
    amount: str
    description: str | None
    currency: str | None
    account: str | None
    jar: str | None
    method: str | None
    quantite_crypto: str | None
    taux_usd_eur: str | None
    adresse_crypto: str | None
    revenue_type: str | None

    @classmethod
    def resolve(cls, mappings: Sequence[ColumnMapping], kind: TransactionKind) -> _Columns:
        missing = missing_required_targets(mappings, kind)
        if missing:
            raise MissingMappingError(missing, str(kind))

        def src(*targets: Target) -> str | None:
            m = find_mapping(mappings, *targets)
            return m.source_column if m is not None else None

        date_col = src(Target.DATE)
        amount_col = src(amount_target(kind))
        assert date_col is not None and amount_col is not None
        return cls(
            date=date_col,
            amount=amount_col,
            description=src(*DESCRIPTION_TARGETS),
            currency=src(*CURRENCY_TARGETS),
            account=src(*ACCOUNT_TARGETS),
            jar=src(Target.JAR),
            method=src(Target.METHODE),
            quantite_crypto=src(Target.QUANTITE_CRYPTO),
            taux_usd_eur=src(Target.TAUX_USD_EUR),
            adresse_crypto=src(Target.ADRESSE_CRYPTO),
            revenue_type=src(Target.TYPE),
        )


class _Builder(Protocol):
    def build(
        self,
        row: RawRow,
        cols: _Columns,
        *,
        date: str,
        parsed: ParsedAmount,
        account: str,
        rules: Sequence[AutoRule],
    ) -> Transaction: ...


class _SpendingBuilder:
    def build(
        self,
        row: RawRow,
        cols: _Columns,
        *,
        date: str,
        parsed: ParsedAmount,
        account: str,
        rules: Sequence[AutoRule],
    ) -> SpendingTransaction:
        description = row.text(cols.description)
        rule = match_auto_rule(description, rules, kind=TransactionKind.SPENDING)

        jar = Jar.parse(row.cell(cols.jar)) if cols.jar else None
        if jar is None:
            jar = rule.jar if rule and rule.jar else classify(description)

        suggested_account = (
            row.text(cols.account) or (rule.account if rule else None) or account or FALLBACK_LABEL
        )
        return SpendingTransaction(
            date=date,
            amount=parsed.amount,
            currency=parsed.currency,
            description=description,
            suggested_jar=jar,
            suggested_account=suggested_account,
        )


class _RevenueBuilder:
    def build(
        self,
        row: RawRow,
        cols: _Columns,
        *,
        date: str,
        parsed: ParsedAmount,
        account: str,
        rules: Sequence[AutoRule],
    ) -> RevenueTransaction:
        source = row.text(cols.description) or account or FALLBACK_LABEL
        rule = match_auto_rule(source, rules, kind=TransactionKind.REVENUE)

        destination = row.text(cols.account)
        revenue_type = row.text(cols.revenue_type)
        if rule is not None:
            destination = destination or rule.destination or ""
            revenue_type = revenue_type or rule.income_type or ""

        return RevenueTransaction(
            date=date,
            amount=parsed.amount,
            currency=parsed.currency,
            suggested_source=source,
            suggested_method=row.text(cols.method),
            valeur=parsed.currency,
            quantite_crypto=row.text(cols.quantite_crypto),
            taux_usd_eur=row.text(cols.taux_usd_eur),
            adresse_crypto=row.text(cols.adresse_crypto),
            compte_destination=destination,
            revenue_type=revenue_type,
        )


_BUILDERS: dict[TransactionKind, _Builder] = {
    TransactionKind.SPENDING: _SpendingBuilder(),
    TransactionKind.REVENUE: _RevenueBuilder(),
}


def _rejection_reason(tx: Transaction) -> str | None:
    if not tx.date:
        return EMPTY_DATE
    if tx.amount <= Decimal("0"):
        return NON_POSITIVE_AMOUNT
    if not tx.display_label:
        return EMPTY_LABEL
    return None


def transform_rows_with_report(
    rows: Iterable[RawRow | Mapping[str, object]],
    mappings: Sequence[ColumnMapping],
    account: str | None,
    kind: TransactionKind | str,
    *,
    rules: Sequence[AutoRule] = (),
) -> tuple[list[Transaction], TransformReport]:
    """Build transactions for ``kind`` and report the rows that were dropped.

    Parameters
    ----------
    rows:
        Analyzer rows; plain mappings are wrapped in :class:`RawRow`.
    mappings:
        Column mappings after user edits. For each target the first mapping
        in list order wins.
    account:
        Account name typed by the user; fallback for the spending account and
        the revenue source.
    kind:
        ``"spending"`` or ``"revenue"``.
    rules:
        Optional user auto-rules applied after the keyword classifier.
    """

    kind = TransactionKind(kind)
    cols = _Columns.resolve(mappings, kind)
    builder = _BUILDERS[kind]
    account_name = (account or "").strip()

    out: list[Transaction] = []
    report = TransformReport()
    for index, raw in enumerate(rows):
        report.total_rows += 1
        row = raw if isinstance(raw, RawRow) else RawRow(raw)  # type: ignore[arg-type]

        date = normalize_date(row.text(cols.date))
        parsed = parse_amount(row.cell(cols.amount), row.cell(cols.currency))
        tx = builder.build(
            row, cols, date=date, parsed=parsed, account=account_name, rules=rules
        )

        reason = _rejection_reason(tx)
        if reason is not None:
            report.dropped.append(DroppedRow(index=index, reason=reason))
            _logger.debug("transform:drop row=%d reason=%s", index, reason)
            continue
        out.append(tx)

    _logger.info(
        "transform:done kind=%s rows=%d kept=%d dropped=%d",
        kind,
        report.total_rows,
        report.kept,
        len(report.dropped),
    )
    return out, report


def transform_rows(
    rows: Iterable[RawRow | Mapping[str, object]],
    mappings: Sequence[ColumnMapping],
    account: str | None,
    kind: TransactionKind | str,
    *,
    rules: Sequence[AutoRule] = (),
) -> list[Transaction]:
    """Build transactions for ``kind``; rejected rows are dropped silently."""

    transactions, _report = transform_rows_with_report(
        rows, mappings, account, kind, rules=rules
    )
    return transactions


__all__ = [
    "EMPTY_DATE",
    "EMPTY_LABEL",
    "NON_POSITIVE_AMOUNT",
    "DroppedRow",
    "TransformReport",
    "transform_rows",
    "transform_rows_with_report",
]
