from __future__ import annotations

from decimal import Decimal

import pytest

from statement_import.amounts import parse_amount, resolve_currency


def test_numeric_input_is_absolute_value() -> None:
    assert parse_amount(-42.5).amount == Decimal("42.5")
    assert parse_amount(17).amount == Decimal("17")
    assert parse_amount(Decimal("-3.10")).amount == Decimal("3.10")
    assert parse_amount(12).currency == "EUR"


def test_non_finite_number_becomes_zero() -> None:
    assert parse_amount(float("nan")).amount == Decimal("0")
    assert parse_amount(float("inf")).amount == Decimal("0")


def test_strict_pattern_with_embedded_currency() -> None:
    parsed = parse_amount("1,234.56 USD")
    assert parsed.amount == Decimal("1234.56")
    assert parsed.currency == "USD"
    assert parsed.used_fallback is False


def test_embedded_currency_overrides_hint() -> None:
    parsed = parse_amount("45.90 GBP", "EUR")
    assert parsed.currency == "GBP"


def test_strict_pattern_accepts_plain_digits_and_multiple_groups() -> None:
    assert parse_amount("1234.56").amount == Decimal("1234.56")
    assert parse_amount("-1,234,567.89").amount == Decimal("1234567.89")


def test_hint_applies_when_no_code_is_embedded() -> None:
    parsed = parse_amount("45.90", " usd ")
    assert parsed.currency == "USD"


@pytest.mark.parametrize("hint", ["", "$", "dollars", "12", None])
def test_unusable_hint_falls_back_to_eur(hint: object) -> None:
    assert parse_amount("10.00", hint).currency == "EUR"
    assert resolve_currency(hint) == "EUR"


def test_decimal_comma_uses_fallback_path() -> None:
    parsed = parse_amount("12,5")
    assert parsed.amount == Decimal("12.5")
    assert parsed.used_fallback is True


def test_fallback_strips_symbols_and_keeps_hint() -> None:
    parsed = parse_amount("€ -1,000.5", "CHF")
    assert parsed.amount == Decimal("1000.5")
    assert parsed.currency == "CHF"
    assert parsed.used_fallback is True


def test_more_than_two_decimals_goes_through_fallback() -> None:
    parsed = parse_amount("3.14159")
    assert parsed.amount == Decimal("3.14159")
    assert parsed.used_fallback is True


def test_unknown_embedded_code_is_not_strict() -> None:
    # XYZ is not in the allow-list, so the loose parser reads the number only.
    parsed = parse_amount("10.00 XYZ")
    assert parsed.amount == Decimal("10.00")
    assert parsed.currency == "EUR"
    assert parsed.used_fallback is True


@pytest.mark.parametrize("raw", ["abc", "", None, "--", True])
def test_unparseable_input_is_zero(raw: object) -> None:
    parsed = parse_amount(raw)
    assert parsed.amount == Decimal("0")
    assert parsed.amount.is_finite()
