"""Data models and type aliases for ``statement_import``.

Two families live here:

- Domain records built and enriched by the pipeline: :class:`RawRow`, the
  transaction variants :class:`SpendingTransaction` and
  :class:`RevenueTransaction`, and the enums that constrain them.
- Wire DTOs validated with Pydantic: the file analyzer payload
  (:class:`FileStructure`), exchange-rate and duplicate-check responses, and
  the on-disk rate cache entry.

Transactions are mutable on purpose: each stage enriches the same record in
place (conversion provenance, duplicate verdict, user edits) rather than
building a new one.
"""

from __future__ import annotations

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass
from decimal import Decimal
from enum import StrEnum
from typing import Any, ClassVar, TypeAlias

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_CURRENCY = "EUR"
FALLBACK_LABEL = "Imported"

# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class TransactionKind(StrEnum):
    SPENDING = "spending"
    REVENUE = "revenue"


class Jar(StrEnum):
    """Budget bucket assigned to a spending transaction."""

    NEC = "NEC"
    PLAY = "PLAY"
    EDUC = "EDUC"
    GIFT = "GIFT"
    FFA = "FFA"
    LTSS = "LTSS"

    @classmethod
    def parse(cls, value: object) -> Jar | None:
        """Return the jar named by ``value`` (case-insensitive) or ``None``."""

        if value is None:
            return None
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            return None


class Target(StrEnum):
    """Canonical target fields a source column can be mapped onto."""

    DATE = "Date"
    DESCRIPTION = "Description"
    SOURCE = "Source"
    AMOUNT = "Amount"
    MONTANT = "Montant"
    CURRENCY = "Currency"
    VALEUR = "Valeur"
    ACCOUNT_COLUMN = "AccountColumn"
    ACCOUNT = "Account"
    COMPTE_DESTINATION = "CompteDestination"
    JAR = "Jar"
    METHODE = "Methode"
    QUANTITE_CRYPTO = "QuantiteCrypto"
    TAUX_USD_EUR = "TauxUSDEUR"
    ADRESSE_CRYPTO = "AdresseCrypto"
    TYPE = "Type"
    IGNORE = "ignore"


# Targets offered for each kind, in display order.
SPENDING_TARGETS: tuple[Target, ...] = (
    Target.DATE,
    Target.DESCRIPTION,
    Target.AMOUNT,
    Target.JAR,
    Target.ACCOUNT,
    Target.CURRENCY,
    Target.IGNORE,
)
REVENUE_TARGETS: tuple[Target, ...] = (
    Target.DATE,
    Target.MONTANT,
    Target.VALEUR,
    Target.QUANTITE_CRYPTO,
    Target.METHODE,
    Target.TAUX_USD_EUR,
    Target.ADRESSE_CRYPTO,
    Target.COMPTE_DESTINATION,
    Target.TYPE,
    Target.IGNORE,
)


# ---------------------------------------------------------------------------
# Column mapping
# ---------------------------------------------------------------------------


class ColumnMapping(BaseModel):
    """Association of one detected source column with a target field.

    ``confidence == 1`` marks an exact or forced match (user override, or an
    ``ignore`` selection); lower values are heuristic guesses.
    """

    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=False)

    source_column: str = Field(alias="sourceColumn")
    target_column: Target = Field(alias="targetColumn")
    confidence: float = 1.0

    @field_validator("confidence")
    @classmethod
    def _confidence_in_unit_interval(cls, v: float) -> float:
        fv = float(v)
        if 0.0 <= fv <= 1.0:
            return fv
        raise ValueError("confidence must be within [0,1]")

    def to_payload(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


# ---------------------------------------------------------------------------
# Raw rows
# ---------------------------------------------------------------------------

CellValue: TypeAlias = str | int | float | bool | None


class RawRow(Mapping[str, CellValue]):
    """Read-only row of cells keyed by source column name.

    Missing keys are explicit: :meth:`cell` returns ``None`` and :meth:`text`
    returns ``""``. The latter is the boundary where "no mapping" and "empty
    cell" collapse into the empty string the transformer works with.
    """

    __slots__ = ("_cells",)

    def __init__(self, cells: Mapping[str, CellValue] | None = None) -> None:
        self._cells: dict[str, CellValue] = dict(cells or {})

    def __getitem__(self, column: str) -> CellValue:
        return self._cells[column]

    def __iter__(self) -> Iterator[str]:
        return iter(self._cells)

    def __len__(self) -> int:
        return len(self._cells)

    def __repr__(self) -> str:
        return f"RawRow({self._cells!r})"

    def cell(self, column: str | None) -> CellValue:
        if column is None:
            return None
        return self._cells.get(column)

    def text(self, column: str | None) -> str:
        value = self.cell(column)
        if value is None:
            return ""
        return str(value)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


def _num(d: Decimal | None) -> float | None:
    return float(d) if d is not None else None


@dataclass(slots=True, kw_only=True)
class _TransactionBase:
    """Fields shared by both transaction variants."""

    kind: ClassVar[TransactionKind]
    editable_fields: ClassVar[tuple[str, ...]]

    date: str
    amount: Decimal
    currency: str = DEFAULT_CURRENCY
    selected: bool = False
    is_duplicate: bool | None = None
    duplicate_note: str | None = None
    # Conversion provenance
    original_amount: Decimal | None = None
    original_currency: str | None = None
    conversion_rate: Decimal | None = None
    conversion_note: str | None = None

    def _common_payload(self) -> dict[str, Any]:
        return {
            "date": self.date,
            "amount": _num(self.amount),
            "currency": self.currency,
            "selected": self.selected,
            "isDuplicate": self.is_duplicate,
            "duplicateNote": self.duplicate_note,
            "originalAmount": _num(self.original_amount),
            "originalCurrency": self.original_currency,
            "conversionRate": _num(self.conversion_rate),
            "conversionNote": self.conversion_note,
        }


@dataclass(slots=True, kw_only=True)
class SpendingTransaction(_TransactionBase):
    kind: ClassVar[TransactionKind] = TransactionKind.SPENDING
    editable_fields: ClassVar[tuple[str, ...]] = (
        "date",
        "amount",
        "description",
        "suggested_jar",
        "suggested_account",
    )

    description: str
    suggested_jar: Jar = Jar.NEC
    suggested_account: str = FALLBACK_LABEL

    @property
    def display_label(self) -> str:
        return self.description

    def to_payload(self) -> dict[str, Any]:
        """Serialize to the camelCase JSON shape used by external services."""

        payload = self._common_payload()
        payload.update(
            {
                "description": self.description,
                "suggestedJar": str(self.suggested_jar),
                "suggestedAccount": self.suggested_account,
            }
        )
        return payload


@dataclass(slots=True, kw_only=True)
class RevenueTransaction(_TransactionBase):
    """A revenue line. ``description`` is always empty for this variant;
    ``suggested_source`` is the display label."""

    kind: ClassVar[TransactionKind] = TransactionKind.REVENUE
    editable_fields: ClassVar[tuple[str, ...]] = (
        "date",
        "amount",
        "suggested_source",
        "suggested_method",
        "valeur",
        "quantite_crypto",
        "taux_usd_eur",
        "adresse_crypto",
        "compte_destination",
        "revenue_type",
    )

    suggested_source: str
    suggested_method: str = ""
    valeur: str = ""
    quantite_crypto: str = ""
    taux_usd_eur: str = ""
    adresse_crypto: str = ""
    compte_destination: str = ""
    revenue_type: str = ""

    @property
    def description(self) -> str:
        return ""

    @property
    def display_label(self) -> str:
        return self.suggested_source

    def to_payload(self) -> dict[str, Any]:
        payload = self._common_payload()
        payload.update(
            {
                "description": "",
                "suggestedSource": self.suggested_source,
                "suggestedMethod": self.suggested_method,
                "valeur": self.valeur,
                "quantiteCrypto": self.quantite_crypto,
                "tauxUSDEUR": self.taux_usd_eur,
                "adresseCrypto": self.adresse_crypto,
                "compteDestination": self.compte_destination,
                "type": self.revenue_type,
            }
        )
        return payload


Transaction: TypeAlias = SpendingTransaction | RevenueTransaction
"""Either transaction variant; dispatch on ``tx.kind``."""


# ---------------------------------------------------------------------------
# Wire DTOs
# ---------------------------------------------------------------------------


class FileStructure(BaseModel):
    """Structure detected by the file analyzer for one uploaded statement."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    headers: list[str]
    rows: list[dict[str, Any]]
    preview: list[dict[str, Any]] = Field(default_factory=list)
    suggested_mappings: list[ColumnMapping] = Field(
        default_factory=list, alias="suggestedMappings"
    )
    total_rows: int = Field(0, alias="totalRows")

    def raw_rows(self) -> list[RawRow]:
        return [RawRow(r) for r in self.rows]


class AnalyzerResponse(BaseModel):
    """Top-level analyzer response: ``{"structure": {...}}``."""

    model_config = ConfigDict(extra="ignore")

    structure: FileStructure


class RateResponse(BaseModel):
    """Historical rate service body: ``{"rates": {"EUR": 0.92}}``."""

    model_config = ConfigDict(extra="allow")

    rates: dict[str, float] | None = None

    def rate_for(self, currency: str) -> float | None:
        if not self.rates:
            return None
        rate = self.rates.get(currency)
        if rate is None or not math.isfinite(rate) or rate <= 0:
            return None
        return rate


class DuplicateVerdict(BaseModel):
    """One annotated transaction echoed back by the duplicate detector.

    Extras are allowed: the detector echoes the full transaction payload and
    may add fields (e.g. a confidence grade) that this package ignores.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    is_duplicate: bool | None = Field(None, alias="isDuplicate")
    duplicate_note: str | None = Field(None, alias="duplicateNote")


class DuplicateCheckResponse(BaseModel):
    model_config = ConfigDict(extra="allow")

    transactions: list[DuplicateVerdict] | None = None


class RateCacheFile(BaseModel):
    """On-disk cache entry for one historical rate."""

    model_config = ConfigDict(strict=True, extra="forbid", str_strip_whitespace=True)

    schema_version: int
    base: str
    quote: str
    date: str
    # Decimal rendered as a string to round-trip exactly.
    rate: str


__all__ = [
    "DEFAULT_CURRENCY",
    "FALLBACK_LABEL",
    "TransactionKind",
    "Jar",
    "Target",
    "SPENDING_TARGETS",
    "REVENUE_TARGETS",
    "ColumnMapping",
    "CellValue",
    "RawRow",
    "SpendingTransaction",
    "RevenueTransaction",
    "Transaction",
    "FileStructure",
    "AnalyzerResponse",
    "RateResponse",
    "DuplicateVerdict",
    "DuplicateCheckResponse",
    "RateCacheFile",
]
