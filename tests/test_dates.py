from __future__ import annotations

import pytest

from statement_import.dates import normalize_date


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2025-11-21", "2025-11-21"),
        ("21/11/2025", "2025-11-21"),
        ("05/01/2024", "2024-01-05"),
        ("21 November 2025 , 02:37am", "2025-11-21"),
        ("3 march 2024", "2024-03-03"),
        ("Paid on 7 JULY 2023 at noon", "2023-07-07"),
        ("Nov 21, 2025", "2025-11-21"),
        ("Feb 3, 2024", "2024-02-03"),
        ("2025-11-21 02:37:00", "2025-11-21"),
    ],
)
def test_known_shapes_become_iso(raw: str, expected: str) -> None:
    assert normalize_date(raw) == expected


def test_iso_passthrough_is_stable() -> None:
    once = normalize_date("21/11/2025")
    assert normalize_date(once) == once


def test_unknown_shape_is_returned_trimmed() -> None:
    assert normalize_date("  yesterday ") == "yesterday"
    assert normalize_date("2025.11.21") == "2025.11.21"


def test_empty_input_stays_empty() -> None:
    assert normalize_date("") == ""
    assert normalize_date("   ") == ""


def test_full_month_name_wins_over_abbreviated_form() -> None:
    # Both the long-month and the "Mon DD, YYYY" patterns could apply; the
    # long-month pattern is tried first.
    assert normalize_date("1 May 2024, May 2, 2024") == "2024-05-01"
