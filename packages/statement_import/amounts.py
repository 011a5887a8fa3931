"""Amount and currency extraction from raw statement cells.

Amounts are magnitudes: the sign is always discarded because the transaction
direction comes from the import kind (spending vs revenue), not from the
cell. Parsing never raises; an unparseable cell yields ``0`` and the row is
later rejected by the transformer's acceptance filter.

Two paths exist for string cells:

- strict: ``-1,234.56 USD`` style (optional ``,`` thousands groups, exactly
  two decimals, optional whitespace-separated currency code from a fixed
  allow-list). An embedded code overrides the caller's hint.
- loose: anything else. A lone comma with no dot is read as a decimal comma,
  other commas are dropped, every character other than digits, ``.`` and
  ``-`` is stripped, and the leading numeric prefix is parsed. The hint (or
  the default currency) is kept.

:attr:`ParsedAmount.used_fallback` tells which path produced the value.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from .models import DEFAULT_CURRENCY

KNOWN_CURRENCIES: tuple[str, ...] = (
    "EUR",
    "USD",
    "AUD",
    "GBP",
    "CAD",
    "CHF",
    "THB",
    "CNY",
    "JPY",
)

_ZERO = Decimal("0")

_STRICT_RE = re.compile(
    r"^(-?(?:\d{1,3}(?:,\d{3})+|\d+)\.\d{2})(?:\s+(" + "|".join(KNOWN_CURRENCIES) + r"))?$"
)
_CURRENCY_CODE_RE = re.compile(r"^[A-Z]{3}$")
_NOT_NUMERIC_RE = re.compile(r"[^\d.\-]")
_LEADING_NUMBER_RE = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


@dataclass(frozen=True, slots=True)
class ParsedAmount:
    amount: Decimal
    currency: str
    used_fallback: bool = False


def resolve_currency(hint: object, default: str = DEFAULT_CURRENCY) -> str:
    """Return a 3-letter code from a currency-column value, else ``default``.

    Blank or malformed hints (symbols, names, numbers) fall back to the
    default so every transaction keeps a 3-letter code.
    """

    if hint is None:
        return default
    code = str(hint).strip().upper()
    return code if _CURRENCY_CODE_RE.match(code) else default


def _loose_decimal(text: str) -> Decimal | None:
    s = text
    if s.count(",") == 1 and "." not in s:
        s = s.replace(",", ".")
    else:
        s = s.replace(",", "")
    s = _NOT_NUMERIC_RE.sub("", s)
    m = _LEADING_NUMBER_RE.match(s)
    if not m:
        return None
    try:
        return Decimal(m.group(0))
    except InvalidOperation:
        return None


def parse_amount(raw: object, currency_hint: object = None) -> ParsedAmount:
    """Extract ``(|amount|, currency)`` from a numeric or string cell.

    >>> parse_amount("1,234.56 USD")
    ParsedAmount(amount=Decimal('1234.56'), currency='USD', used_fallback=False)
    >>> parse_amount(-12.5).amount
    Decimal('12.5')
    >>> parse_amount("abc").amount
    Decimal('0')
    """

    currency = resolve_currency(currency_hint)

    # bool is an int subclass; treat it as text like any other odd cell.
    if isinstance(raw, int | float | Decimal) and not isinstance(raw, bool):
        number = Decimal(str(raw))
        if not number.is_finite():
            return ParsedAmount(_ZERO, currency)
        return ParsedAmount(abs(number), currency)

    text = "" if raw is None else str(raw).strip()

    m = _STRICT_RE.match(text)
    if m:
        number, code = m.groups()
        return ParsedAmount(abs(Decimal(number.replace(",", ""))), code or currency)

    value = _loose_decimal(text)
    if value is None or not value.is_finite():
        return ParsedAmount(_ZERO, currency, used_fallback=True)
    return ParsedAmount(abs(value), currency, used_fallback=True)


__all__ = ["KNOWN_CURRENCIES", "ParsedAmount", "parse_amount", "resolve_currency"]
