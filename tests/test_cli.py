from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

import statement_import.cli as cli
import statement_import.sink as sink_mod
from statement_import.sink import SpreadsheetSink
from tests.helpers.http_stub import SINK_URL, RecordingTransport, status_handler

runner = CliRunner()

STRUCTURE = {
    "structure": {
        "headers": ["Date", "Description", "Amount"],
        "rows": [
            {"Date": "21/11/2025", "Description": "Carrefour Paris", "Amount": "45.90 EUR"},
            {"Date": "22/11/2025", "Description": "Netflix", "Amount": "15.99"},
            {"Date": "", "Description": "broken", "Amount": "1.00"},
        ],
        "totalRows": 3,
    }
}


@pytest.fixture(autouse=True)
def _no_logging_handlers(monkeypatch: pytest.MonkeyPatch) -> None:
    # Keep the package logger untouched so other tests can capture records.
    monkeypatch.setattr(cli, "configure_logging", lambda *a, **k: None)


@pytest.fixture()
def structure_path(tmp_path: Path) -> Path:
    p = tmp_path / "structure.json"
    p.write_text(json.dumps(STRUCTURE), encoding="utf-8")
    return p


def test_suggest_mappings_prints_table(structure_path: Path) -> None:
    result = runner.invoke(cli.app, ["suggest-mappings", "--structure", str(structure_path)])
    assert result.exit_code == 0, result.output
    assert "Description" in result.output
    assert "Missing required targets" not in result.output


def test_suggest_mappings_reports_missing_targets(tmp_path: Path) -> None:
    p = tmp_path / "bare.json"
    p.write_text(json.dumps({"headers": ["Foo", "Amount"], "rows": []}), encoding="utf-8")
    result = runner.invoke(cli.app, ["suggest-mappings", "--structure", str(p)])
    assert result.exit_code == 0, result.output
    assert "Missing required targets: Date, Description" in result.output


def test_prepare_writes_reviewed_transactions(structure_path: Path, tmp_path: Path) -> None:
    out = tmp_path / "review.json"
    result = runner.invoke(
        cli.app,
        [
            "prepare",
            "--structure",
            str(structure_path),
            "--kind",
            "spending",
            "--account",
            "Revolut",
            "--no-convert",
            "--output",
            str(out),
        ],
    )
    assert result.exit_code == 0, result.output
    assert "2 transactions, 2 selected, 0 duplicates, 1 rows dropped" in result.output
    rows = json.loads(out.read_text(encoding="utf-8"))
    assert [r["description"] for r in rows] == ["Carrefour Paris", "Netflix"]
    assert [r["suggestedJar"] for r in rows] == ["NEC", "PLAY"]
    assert all(r["isDuplicate"] is False and r["selected"] is True for r in rows)
    assert rows[0]["date"] == "2025-11-21"


def test_prepare_with_mapping_file_missing_date(structure_path: Path, tmp_path: Path) -> None:
    mapping = tmp_path / "mapping.json"
    mapping.write_text(
        json.dumps(
            [
                {"sourceColumn": "Date", "targetColumn": "ignore", "confidence": 1},
                {"sourceColumn": "Description", "targetColumn": "Description"},
                {"sourceColumn": "Amount", "targetColumn": "Amount"},
            ]
        ),
        encoding="utf-8",
    )
    result = runner.invoke(
        cli.app,
        [
            "prepare",
            "--structure",
            str(structure_path),
            "--kind",
            "spending",
            "--account",
            "Revolut",
            "--mapping",
            str(mapping),
            "--no-convert",
        ],
    )
    assert result.exit_code == 1
    assert "Error: Missing required column mapping for spending: Date" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["--kind", "transfers", "--account", "x"],
        ["--kind", "spending", "--account", "x", "--rules", "/nonexistent/rules.json"],
    ],
)
def test_prepare_input_errors(structure_path: Path, args: list[str]) -> None:
    result = runner.invoke(cli.app, ["prepare", "--structure", str(structure_path), *args])
    assert result.exit_code == 1
    assert "Error:" in result.output


def test_prepare_missing_structure_file(tmp_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        [
            "prepare",
            "--structure",
            str(tmp_path / "absent.json"),
            "--kind",
            "spending",
            "--account",
            "x",
        ],
    )
    assert result.exit_code == 1
    assert "Error: File not found" in result.output


def test_commit_requires_sink_url(structure_path: Path) -> None:
    result = runner.invoke(
        cli.app,
        [
            "prepare",
            "--structure",
            str(structure_path),
            "--kind",
            "spending",
            "--account",
            "x",
            "--no-convert",
            "--commit",
        ],
    )
    assert result.exit_code == 1
    assert "SI_SINK_URL" in result.output


def test_commit_sends_selection_to_sink(
    structure_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    transport = RecordingTransport(status_handler(200, {"status": "ok"}))

    def _stub_sink(url: str, api_key: str | None = None, **_: object) -> SpreadsheetSink:
        return SpreadsheetSink(url, api_key, client=transport.client())

    monkeypatch.setattr(sink_mod, "SpreadsheetSink", _stub_sink)
    monkeypatch.setenv("SI_SINK_URL", SINK_URL)
    monkeypatch.setenv("SI_SINK_API_KEY", "secret")
    result = runner.invoke(
        cli.app,
        [
            "prepare",
            "--structure",
            str(structure_path),
            "--kind",
            "spending",
            "--account",
            "Revolut",
            "--no-convert",
            "--commit",
        ],
    )
    assert result.exit_code == 0, result.output
    assert "Imported 2 transactions" in result.output
    bodies = transport.json_bodies()
    assert [b["row"]["description"] for b in bodies] == ["Carrefour Paris", "Netflix"]
    assert {b["key"] for b in bodies} == {"secret"}
