from __future__ import annotations

import logging

import pytest

from statement_import.logging_setup import LEVEL_ENV_VAR, get_logger, resolve_level


@pytest.mark.parametrize(
    ("level", "expected"),
    [
        (logging.DEBUG, logging.DEBUG),
        ("warning", logging.WARNING),
        (" Error ", logging.ERROR),
        ("15", 15),
    ],
)
def test_resolve_level_from_argument(level: int | str, expected: int) -> None:
    assert resolve_level(level) == expected


def test_resolve_level_falls_back_to_env_then_info(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv(LEVEL_ENV_VAR, raising=False)
    assert resolve_level() == logging.INFO
    assert resolve_level("chatty") == logging.INFO
    monkeypatch.setenv(LEVEL_ENV_VAR, "debug")
    assert resolve_level() == logging.DEBUG
    assert resolve_level("chatty") == logging.DEBUG


def test_get_logger_returns_package_child() -> None:
    logger = get_logger("statement_import.currency")
    assert logger.name == "statement_import.currency"
    assert logging.getLogger("statement_import").handlers
