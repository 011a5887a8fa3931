"""Keyword-based jar suggestion for spending descriptions.

Public API:
    - :func:`classify`: fixed keyword table, first matching jar wins.
    - :class:`AutoRule` / :func:`load_auto_rules` / :func:`match_auto_rule`:
      user-maintained keyword rules that override the suggestion for either
      transaction kind.

Matching is a case-insensitive substring test on the lower-cased text. Table
order is significant: a description hitting several jars gets the first one.
"""

from __future__ import annotations

import json
from collections.abc import Iterable
from os import PathLike
from pathlib import Path

from pydantic import BaseModel, ConfigDict, TypeAdapter, field_validator

from .logging_setup import get_logger
from .models import Jar, TransactionKind

_logger = get_logger("statement_import.categorize")

DEFAULT_JAR: Jar = Jar.NEC

# Ordered; FFA and LTSS are valid jars with no keyword rules.
_JAR_KEYWORDS: tuple[tuple[Jar, tuple[str, ...]], ...] = (
    (
        Jar.NEC,
        (
            "pharmacie",
            "gal",
            "intermarche",
            "semello",
            "cevennalgues",
            "phytonut",
            "nutreine",
            "garcon",
            "carrefour",
            "lidl",
            "free",
            "biovie",
            "zencleanz",
            "carre frais",
            "provenc",
            "decathlon",
        ),
    ),
    (
        Jar.PLAY,
        (
            "airbnb",
            "booking",
            "hotel",
            "trip",
            "kiwi",
            "yanssie",
            "restaurant",
            "cinema",
            "netflix",
            "ryanair",
            "air france",
            "sncf",
            "vinci",
            "rompetrol",
            "canal",
            "traveloka",
            "omise",
            "jeremy",
        ),
    ),
    (Jar.EDUC, ("success resources", "formation", "udemy", "ihr einkau")),
    (Jar.GIFT, ("gofundme", "don", "charity", "soul travel", "chevry")),
)


def classify(description: str) -> Jar:
    """Suggest a jar for ``description``; ``NEC`` when nothing matches."""

    desc = (description or "").lower()
    for jar, keywords in _JAR_KEYWORDS:
        if any(k in desc for k in keywords):
            return jar
    return DEFAULT_JAR


# ---------------------------------------------------------------------------
# User auto-rules
# ---------------------------------------------------------------------------


class AutoRule(BaseModel):
    """A user keyword rule.

    Spending rules may set ``jar`` and ``account``; revenue rules may set
    ``destination`` and ``income_type``. Unset fields leave the suggestion
    untouched.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, str_strip_whitespace=True)

    id: str | None = None
    mode: TransactionKind
    keyword: str
    jar: Jar | None = None
    account: str | None = None
    destination: str | None = None
    income_type: str | None = None

    @field_validator("keyword")
    @classmethod
    def _keyword_non_empty(cls, v: str) -> str:
        if not v:
            raise ValueError("keyword must be non-empty")
        return v


_RULES_ADAPTER = TypeAdapter(list[AutoRule])


def load_auto_rules(path: str | PathLike[str]) -> list[AutoRule]:
    """Read a JSON array of rules from ``path``.

    Raises ``FileNotFoundError`` for a missing file and
    ``pydantic.ValidationError`` / ``json.JSONDecodeError`` for bad content;
    the caller decides whether a broken rules file is fatal.
    """

    text = Path(path).read_text(encoding="utf-8")
    rules = _RULES_ADAPTER.validate_python(json.loads(text))
    _logger.debug("auto_rules:loaded count=%d path=%s", len(rules), path)
    return rules


def match_auto_rule(
    text: str, rules: Iterable[AutoRule], *, kind: TransactionKind
) -> AutoRule | None:
    """Return the first rule of ``kind`` whose keyword occurs in ``text``."""

    haystack = (text or "").strip().lower()
    if not haystack:
        return None
    for rule in rules:
        if rule.mode == kind and rule.keyword.lower() in haystack:
            return rule
    return None


__all__ = [
    "DEFAULT_JAR",
    "classify",
    "AutoRule",
    "load_auto_rules",
    "match_auto_rule",
]
