"""Convert transaction amounts to EUR using historical exchange rates.

Public API:
    - :class:`FrankfurterRateClient`: ``GET {base}/{date}?from=X&to=Y``
      against a Frankfurter-compatible rate service, backed by the on-disk
      rate cache.
    - :class:`CurrencyConverter`: enriches each transaction in place with
      provenance fields (original amount/currency, applied rate, note).

A failed lookup never aborts the batch: the transaction keeps its original
amount and currency, ``conversion_rate`` is ``None`` and the note carries a
warning the review step can display.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Protocol

import httpx
from pydantic import ValidationError

from . import cache
from .config import DEFAULT_HTTP_TIMEOUT, DEFAULT_RATE_API_URL
from .errors import RateLookupError
from .logging_setup import get_logger
from .models import DEFAULT_CURRENCY, RateResponse, Transaction
from .pmap import p_map

_logger = get_logger("statement_import.currency")

_CENT = Decimal("0.01")
_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class RateProvider(Protocol):
    def get_rate(self, base: str, quote: str, date: str) -> Decimal:
        """Return the ``base -> quote`` rate on ``date``; raise ``RateLookupError``."""
        ...


class FrankfurterRateClient:
    """Historical rate lookups over HTTP.

    Parameters
    ----------
    base_url:
        Service root; the date is appended as a path segment.
    timeout:
        Per-request timeout in seconds (ignored when ``client`` is given).
    client:
        Optional pre-built ``httpx.Client`` (tests pass one with a
        ``MockTransport``). A client passed in is not closed by :meth:`close`.
    use_cache:
        Read and write the on-disk rate cache.
    """

    def __init__(
        self,
        base_url: str = DEFAULT_RATE_API_URL,
        *,
        timeout: float = DEFAULT_HTTP_TIMEOUT,
        client: httpx.Client | None = None,
        use_cache: bool = True,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.Client(timeout=timeout)
        self._use_cache = use_cache

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> FrankfurterRateClient:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    def get_rate(self, base: str, quote: str, date: str) -> Decimal:
        if not _ISO_DATE_RE.match(date):
            raise RateLookupError(f"cannot look up a rate for non-ISO date {date!r}")

        if self._use_cache:
            cached = cache.read_rate(base, quote, date)
            if cached is not None:
                _logger.debug("rate:cache_hit %s->%s date=%s rate=%s", base, quote, date, cached)
                return cached

        try:
            resp = self._client.get(
                f"{self._base_url}/{date}", params={"from": base, "to": quote}
            )
        except httpx.HTTPError as e:
            raise RateLookupError(f"rate request failed: {e}") from e

        if not resp.is_success:
            raise RateLookupError(f"rate API returned {resp.status_code}")

        try:
            body = RateResponse.model_validate_json(resp.content)
        except ValidationError as e:
            raise RateLookupError("rate API returned an unexpected body") from e

        value = body.rate_for(quote)
        if value is None:
            raise RateLookupError(f"No rate found for {base} -> {quote}")
        rate = Decimal(str(value))

        if self._use_cache:
            try:
                cache.write_rate(base, quote, date, rate)
            except OSError:
                _logger.warning("rate:cache_write_failed %s->%s date=%s", base, quote, date)
        return rate


def _to_cents(amount: Decimal, rate: Decimal) -> Decimal:
    if not rate.is_finite() or rate <= 0:
        raise RateLookupError(f"unusable rate {rate}")
    try:
        converted = (amount * rate).quantize(_CENT, rounding=ROUND_HALF_UP)
    except InvalidOperation as e:
        raise RateLookupError(f"rate {rate} overflows amount {amount}") from e
    if converted <= 0:
        raise RateLookupError(f"rate {rate} rounds {amount} to {converted}")
    return converted


class CurrencyConverter:
    """Resolve every transaction's amount to EUR.

    ``concurrency`` bounds how many rate lookups are in flight at once; the
    default of 1 issues them one at a time in input order. Output order
    always matches input order.
    """

    def __init__(self, rates: RateProvider, *, concurrency: int = 1) -> None:
        if concurrency < 1:
            raise ValueError("concurrency must be >= 1")
        self._rates = rates
        self._concurrency = concurrency

    def convert_one(self, tx: Transaction) -> Transaction:
        if tx.currency == DEFAULT_CURRENCY:
            tx.original_amount = tx.amount
            tx.original_currency = DEFAULT_CURRENCY
            tx.conversion_rate = Decimal(1)
            tx.conversion_note = None
            return tx

        original_amount, original_currency = tx.amount, tx.currency
        tx.original_amount = original_amount
        tx.original_currency = original_currency
        try:
            rate = self._rates.get_rate(original_currency, DEFAULT_CURRENCY, tx.date)
            converted = _to_cents(original_amount, rate)
        except RateLookupError as e:
            _logger.warning(
                "convert:failed currency=%s date=%s error=%s", original_currency, tx.date, e
            )
            tx.conversion_rate = None
            tx.conversion_note = f"Conversion failed - amount kept in {original_currency}"
            return tx

        tx.amount = converted
        tx.currency = DEFAULT_CURRENCY
        tx.conversion_rate = rate
        tx.conversion_note = (
            f"Converted from {original_amount} {original_currency} at rate {rate:.4f}"
        )
        _logger.debug(
            "convert:ok %s %s -> %s EUR rate=%s",
            original_amount,
            original_currency,
            tx.amount,
            rate,
        )
        return tx

    def convert_all(self, transactions: Sequence[Transaction]) -> list[Transaction]:
        converted = p_map(transactions, self.convert_one, concurrency=self._concurrency)
        failed = sum(1 for t in converted if t.conversion_rate is None)
        _logger.info(
            "convert:done total=%d foreign=%d failed=%d",
            len(converted),
            sum(1 for t in converted if t.original_currency != DEFAULT_CURRENCY),
            failed,
        )
        return converted


__all__ = ["CurrencyConverter", "FrankfurterRateClient", "RateProvider"]
