"""Column-mapping suggestion, user overrides, and required-target checks.

The analyzer proposes one :class:`~statement_import.models.ColumnMapping` per
detected header; the user may then reassign targets before the transform
step runs. Helpers here are pure and return new lists; the input mappings
are never mutated.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence

from .models import ColumnMapping, Target, TransactionKind

# Ordered header heuristics: (target, substrings). First hit wins.
_HEADER_RULES: tuple[tuple[Target, tuple[str, ...]], ...] = (
    (Target.DATE, ("date", "datum")),
    (
        Target.DESCRIPTION,
        ("description", "libellé", "libelle", "label", "merchant", "détails"),
    ),
    (Target.AMOUNT, ("montant", "amount", "sum", "total", "valeur")),
    (Target.CURRENCY, ("devise", "currency", "ccy")),
    (Target.ACCOUNT_COLUMN, ("compte", "account", "produit", "card")),
    (Target.TYPE, ("type", "catégorie", "category")),
)

# Revenue files use the revenue-sheet names for the same concepts.
_REVENUE_ALIASES: dict[Target, Target] = {
    Target.AMOUNT: Target.MONTANT,
    Target.CURRENCY: Target.VALEUR,
    Target.ACCOUNT_COLUMN: Target.COMPTE_DESTINATION,
}

# In revenue files a bare "Valeur" column holds the currency code, not the amount.
_AMOUNT_WORDS = ("montant", "amount", "sum", "total")

_EXACT_HEADERS = frozenset({"date", "description", "montant", "amount"})
_STRONG_TOKENS = ("date", "description", "montant", "amount")
_MEDIUM_TOKENS = ("devise", "currency", "compte", "account")

# Target groups that satisfy one requirement. The first member names the
# requirement in error messages.
DESCRIPTION_TARGETS: tuple[Target, ...] = (Target.DESCRIPTION, Target.SOURCE)
CURRENCY_TARGETS: tuple[Target, ...] = (Target.CURRENCY, Target.VALEUR)
ACCOUNT_TARGETS: tuple[Target, ...] = (
    Target.ACCOUNT_COLUMN,
    Target.ACCOUNT,
    Target.COMPTE_DESTINATION,
)


def amount_target(kind: TransactionKind) -> Target:
    return Target.MONTANT if kind == TransactionKind.REVENUE else Target.AMOUNT


def required_target_groups(kind: TransactionKind) -> list[tuple[Target, ...]]:
    """Return the target groups that must each be mapped for ``kind``."""

    groups: list[tuple[Target, ...]] = [(Target.DATE,), (amount_target(kind),)]
    if kind == TransactionKind.SPENDING:
        groups.append(DESCRIPTION_TARGETS)
    return groups


def suggest_target(header: str, kind: TransactionKind = TransactionKind.SPENDING) -> Target:
    col = header.strip().lower()
    for target, tokens in _HEADER_RULES:
        if not any(t in col for t in tokens):
            continue
        if kind != TransactionKind.REVENUE:
            return target
        if target == Target.AMOUNT and not any(w in col for w in _AMOUNT_WORDS):
            return Target.VALEUR
        return _REVENUE_ALIASES.get(target, target)
    return Target.IGNORE


def suggest_confidence(header: str) -> float:
    col = header.strip().lower()
    if col in _EXACT_HEADERS:
        return 1.0
    if any(t in col for t in _STRONG_TOKENS):
        return 0.9
    if any(t in col for t in _MEDIUM_TOKENS):
        return 0.75
    return 0.3


def suggest_mappings(
    headers: Iterable[str], kind: TransactionKind = TransactionKind.SPENDING
) -> list[ColumnMapping]:
    """Propose one mapping per header, in header order."""

    return [
        ColumnMapping(
            source_column=h,
            target_column=suggest_target(h, kind),
            confidence=suggest_confidence(h),
        )
        for h in headers
    ]


def remap(
    mappings: Sequence[ColumnMapping], source_column: str, target: Target | str
) -> list[ColumnMapping]:
    """Return a copy of ``mappings`` with ``source_column`` pointed at ``target``.

    Choosing ``ignore`` forces confidence to ``1``; any other reassignment
    keeps the previous confidence. Raises ``KeyError`` when no mapping has
    that source column and ``ValueError`` for an unknown target name.
    """

    new_target = Target(target)
    if not any(m.source_column == source_column for m in mappings):
        raise KeyError(source_column)
    out: list[ColumnMapping] = []
    for m in mappings:
        if m.source_column != source_column:
            out.append(m)
            continue
        confidence = 1.0 if new_target == Target.IGNORE else m.confidence
        out.append(m.model_copy(update={"target_column": new_target, "confidence": confidence}))
    return out


def find_mapping(mappings: Sequence[ColumnMapping], *targets: Target) -> ColumnMapping | None:
    """Return the first mapping (in list order) whose target is in ``targets``."""

    wanted = set(targets)
    for m in mappings:
        if m.target_column in wanted:
            return m
    return None


def missing_required_targets(
    mappings: Sequence[ColumnMapping], kind: TransactionKind
) -> list[str]:
    """Names of required targets with no mapping yet, in requirement order."""

    return [
        str(group[0])
        for group in required_target_groups(kind)
        if find_mapping(mappings, *group) is None
    ]


__all__ = [
    "ACCOUNT_TARGETS",
    "CURRENCY_TARGETS",
    "DESCRIPTION_TARGETS",
    "amount_target",
    "find_mapping",
    "missing_required_targets",
    "remap",
    "required_target_groups",
    "suggest_confidence",
    "suggest_mappings",
    "suggest_target",
]
