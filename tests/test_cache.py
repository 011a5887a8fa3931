from __future__ import annotations

import json
from decimal import Decimal
from pathlib import Path

from statement_import.cache import SCHEMA_VERSION, get_cache_root, read_rate, write_rate


def test_cache_root_follows_env(tmp_path: Path) -> None:
    # conftest points SI_CACHE_DIR at tmp_path / "cache"
    assert get_cache_root() == (tmp_path / "cache").resolve()


def test_write_then_read(tmp_path: Path) -> None:
    write_rate("USD", "EUR", "2025-11-21", Decimal("0.9187"))
    path = get_cache_root() / "rates" / "USD_EUR" / "2025-11-21.json"
    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["schema_version"] == SCHEMA_VERSION
    assert data["rate"] == "0.9187"
    assert read_rate("USD", "EUR", "2025-11-21") == Decimal("0.9187")
    assert not path.with_suffix(".json.tmp").exists()


def test_miss_and_unsafe_keys() -> None:
    assert read_rate("USD", "EUR", "2025-11-22") is None
    write_rate("../x", "EUR", "2025-11-21", Decimal("1"))
    assert read_rate("../x", "EUR", "2025-11-21") is None
    assert not (get_cache_root() / "rates").exists()


def test_corrupt_or_stale_entries_are_misses() -> None:
    d = get_cache_root() / "rates" / "GBP_EUR"
    d.mkdir(parents=True)
    (d / "2025-01-01.json").write_text("{not json", encoding="utf-8")
    (d / "2025-01-02.json").write_text(
        json.dumps(
            {
                "schema_version": SCHEMA_VERSION + 1,
                "base": "GBP",
                "quote": "EUR",
                "date": "2025-01-02",
                "rate": "1.1",
            }
        ),
        encoding="utf-8",
    )
    (d / "2025-01-03.json").write_text(
        json.dumps(
            {
                "schema_version": SCHEMA_VERSION,
                "base": "GBP",
                "quote": "EUR",
                "date": "2025-01-03",
                "rate": "-1",
            }
        ),
        encoding="utf-8",
    )
    assert read_rate("GBP", "EUR", "2025-01-01") is None
    assert read_rate("GBP", "EUR", "2025-01-02") is None
    assert read_rate("GBP", "EUR", "2025-01-03") is None
