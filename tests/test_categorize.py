from __future__ import annotations

import json
from pathlib import Path

import pytest
from pydantic import ValidationError

from statement_import.categorize import AutoRule, classify, load_auto_rules, match_auto_rule
from statement_import.models import Jar, TransactionKind


@pytest.mark.parametrize(
    ("description", "jar"),
    [
        ("Carrefour market", Jar.NEC),
        ("LIDL 1234 PARIS", Jar.NEC),
        ("Netflix subscription", Jar.PLAY),
        ("Ryanair FR1234", Jar.PLAY),
        ("Udemy course", Jar.EDUC),
        ("GoFundMe campaign", Jar.GIFT),
        ("Zzz Widgets", Jar.NEC),
        ("", Jar.NEC),
    ],
)
def test_classify_keyword_table(description: str, jar: Jar) -> None:
    assert classify(description) == jar


def test_classify_first_jar_in_table_order_wins() -> None:
    # "carrefour" (NEC) and "hotel" (PLAY) both occur; NEC comes first.
    assert classify("Hotel Carrefour") == Jar.NEC


def test_match_auto_rule_respects_kind_and_order() -> None:
    rules = [
        AutoRule(mode=TransactionKind.REVENUE, keyword="uber", destination="Bank"),
        AutoRule(mode=TransactionKind.SPENDING, keyword="uber", jar=Jar.PLAY),
        AutoRule(mode=TransactionKind.SPENDING, keyword="uber eats", jar=Jar.NEC),
    ]
    hit = match_auto_rule("UBER EATS order", rules, kind=TransactionKind.SPENDING)
    assert hit is rules[1]
    assert match_auto_rule("nothing here", rules, kind=TransactionKind.SPENDING) is None
    assert match_auto_rule("", rules, kind=TransactionKind.SPENDING) is None


def test_load_auto_rules_from_json(tmp_path: Path) -> None:
    path = tmp_path / "rules.json"
    path.write_text(
        json.dumps(
            [
                {"id": "r1", "mode": "spending", "keyword": " Spotify ", "jar": "PLAY"},
                {"mode": "revenue", "keyword": "salary", "income_type": "Salaire"},
            ]
        ),
        encoding="utf-8",
    )
    rules = load_auto_rules(path)
    assert [r.keyword for r in rules] == ["Spotify", "salary"]
    assert rules[0].jar == Jar.PLAY
    assert rules[1].mode == TransactionKind.REVENUE
    assert rules[1].income_type == "Salaire"


def test_auto_rule_rejects_empty_keyword() -> None:
    with pytest.raises(ValidationError):
        AutoRule(mode=TransactionKind.SPENDING, keyword="   ")


def test_load_auto_rules_missing_file(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_auto_rules(tmp_path / "absent.json")
