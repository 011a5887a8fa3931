# ruff: noqa: I001
"""CLI for the ``statement_import`` package.

This module exposes callable command handlers (``cmd_suggest_mappings``,
``cmd_prepare``) and a Typer-based console interface. Environment variables
are loaded from a local ``.env`` using ``python-dotenv`` before delegating to
command logic. Business logic lives in ``statement_import.api`` and the stage
modules.

Input is the file analyzer's JSON output, either the full response
(``{"structure": {...}}``) or the bare structure object.
"""

from __future__ import annotations

import json
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv
from pydantic import TypeAdapter, ValidationError
from rich.console import Console
from rich.table import Table
from typer.models import OptionInfo

from .logging_setup import configure_logging
from .models import AnalyzerResponse, ColumnMapping, FileStructure, Transaction, TransactionKind

_MAPPINGS_ADAPTER = TypeAdapter(list[ColumnMapping])


# ---- Small module-level helpers used by CLI commands -------------------------


def _load_structure(path: str) -> FileStructure:
    """Read an analyzer payload (wrapped or bare) from ``path``."""

    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict) and "structure" in data:
        return AnalyzerResponse.model_validate(data).structure
    return FileStructure.model_validate(data)


def _load_mappings(path: str) -> list[ColumnMapping]:
    with open(path, encoding="utf-8") as f:
        return _MAPPINGS_ADAPTER.validate_python(json.load(f))


def _mapping_table(mappings: list[ColumnMapping]) -> Table:
    table = Table(title="Suggested column mappings")
    table.add_column("Source column")
    table.add_column("Target")
    table.add_column("Confidence", justify="right")
    for m in mappings:
        table.add_row(m.source_column, str(m.target_column), f"{m.confidence:.2f}")
    return table


def _review_table(transactions: list[Transaction], kind: TransactionKind) -> Table:
    table = Table(title=f"Review ({kind})")
    table.add_column("#", justify="right")
    table.add_column("Sel")
    table.add_column("Date")
    table.add_column("Source" if kind == TransactionKind.REVENUE else "Description")
    table.add_column("Amount", justify="right")
    table.add_column("Cur")
    table.add_column("Notes")
    for i, tx in enumerate(transactions):
        notes = [n for n in (tx.conversion_note, tx.duplicate_note) if n]
        if tx.is_duplicate and not tx.duplicate_note:
            notes.append("duplicate")
        table.add_row(
            str(i),
            "x" if tx.selected else "",
            tx.date,
            tx.display_label,
            f"{tx.amount:.2f}",
            tx.currency,
            "; ".join(notes),
        )
    return table


# ---- Command handlers ---------------------------------------------------------


def cmd_suggest_mappings(structure_path: str, kind: str = "spending") -> int:
    """Print suggested mappings for an analyzer payload.

    Errors are written to stderr and the function returns a non-zero exit
    status. On success, returns ``0``.
    """

    from .mappings import missing_required_targets, suggest_mappings

    try:
        tx_kind = TransactionKind(kind)
    except ValueError:
        print(f"Error: unknown kind '{kind}' (expected spending or revenue)", file=sys.stderr)
        return 1

    try:
        structure = _load_structure(structure_path)
    except FileNotFoundError:
        print(f"Error: File not found: {structure_path}", file=sys.stderr)
        return 1
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Error: invalid analyzer payload: {e}", file=sys.stderr)
        return 1

    mappings = suggest_mappings(structure.headers, tx_kind)
    console = Console()
    console.print(_mapping_table(mappings))
    missing = missing_required_targets(mappings, tx_kind)
    if missing:
        console.print(f"Missing required targets: {', '.join(missing)}")
    return 0


def cmd_prepare(
    structure_path: str,
    *,
    kind: str,
    account: str,
    mapping_path: str | None = None,
    rules_path: str | None = None,
    convert: bool = True,
    output_path: str | None = None,
    commit: bool = False,
) -> int:
    """Run the import pipeline on an analyzer payload and print the review.

    Mappings come from ``mapping_path`` when given, else from the header
    heuristic for ``kind``. With ``commit`` the default selection is sent to
    the sink configured by ``SI_SINK_URL``.
    """

    from .categorize import load_auto_rules
    from .config import Settings
    from .currency import CurrencyConverter, FrankfurterRateClient
    from .duplicates import DuplicateReconciler, HttpDuplicateDetector
    from .errors import ImportFailedError, MissingMappingError
    from .mappings import suggest_mappings
    from .pipeline import prepare_review_with_report
    from .sink import SpreadsheetSink

    try:
        tx_kind = TransactionKind(kind)
    except ValueError:
        print(f"Error: unknown kind '{kind}' (expected spending or revenue)", file=sys.stderr)
        return 1

    try:
        settings = Settings.from_env()
    except ValueError as e:
        print(f"Error: invalid configuration: {e}", file=sys.stderr)
        return 1

    if commit and not settings.sink_url:
        print("Error: SI_SINK_URL is not set in the environment.", file=sys.stderr)
        return 1

    try:
        structure = _load_structure(structure_path)
        mappings = (
            _load_mappings(mapping_path)
            if mapping_path
            else suggest_mappings(structure.headers, tx_kind)
        )
        rules = load_auto_rules(rules_path) if rules_path else []
    except FileNotFoundError as e:
        print(f"Error: File not found: {e.filename}", file=sys.stderr)
        return 1
    except (json.JSONDecodeError, ValidationError) as e:
        print(f"Error: invalid input file: {e}", file=sys.stderr)
        return 1

    with ExitStack() as stack:
        converter = None
        if convert:
            rates = stack.enter_context(
                FrankfurterRateClient(settings.rate_api_url, timeout=settings.http_timeout)
            )
            converter = CurrencyConverter(rates, concurrency=settings.conversion_concurrency)

        detector = None
        if settings.duplicate_api_url:
            detector = stack.enter_context(
                HttpDuplicateDetector(settings.duplicate_api_url, timeout=settings.http_timeout)
            )

        try:
            session, report = prepare_review_with_report(
                structure,
                mappings,
                account,
                tx_kind,
                converter=converter,
                reconciler=DuplicateReconciler(detector),
                rules=rules,
            )
        except MissingMappingError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

        console = Console()
        console.print(_review_table(session.transactions, tx_kind))
        counts = session.counts()
        console.print(
            f"{counts.total} transactions, {counts.selected} selected, "
            f"{counts.duplicates} duplicates, {len(report.dropped)} rows dropped"
        )

        if output_path:
            try:
                Path(output_path).write_text(
                    json.dumps([tx.to_payload() for tx in session.transactions], indent=2),
                    encoding="utf-8",
                )
            except OSError as e:
                print(f"Error: failed to write '{output_path}': {e}", file=sys.stderr)
                return 1

        if commit:
            assert settings.sink_url is not None
            sink = stack.enter_context(
                SpreadsheetSink(
                    settings.sink_url, settings.sink_api_key, timeout=settings.http_timeout
                )
            )
            try:
                sent = session.commit(sink)
            except ImportFailedError as e:
                print(f"Error: {e}", file=sys.stderr)
                return 1
            console.print(f"Imported {sent} transactions")

    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Normalize bank-statement rows into reviewed spending or revenue "
        "transactions. Loads settings from a local .env before running."
    ),
)

# Module-level option object to satisfy ruff B008 (no calls in parameter
# defaults).
STRUCTURE_OPTION: OptionInfo = typer.Option(
    ...,  # required
    "--structure",
    help="Path to the file analyzer's JSON output",
    dir_okay=False,
    file_okay=True,
    exists=False,  # the handler reports missing files itself
)


@app.command("suggest-mappings")
def suggest_mappings_cmd(
    structure: Annotated[Path, STRUCTURE_OPTION],
    *,
    kind: str = typer.Option("spending", help="Transaction kind: spending or revenue."),
) -> None:
    """Show the column mappings the header heuristic suggests."""

    raise typer.Exit(cmd_suggest_mappings(str(structure), kind))


@app.command("prepare")
def prepare_cmd(
    structure: Annotated[Path, STRUCTURE_OPTION],
    *,
    kind: str = typer.Option(..., help="Transaction kind: spending or revenue."),
    account: str = typer.Option(..., help="Account name the statement belongs to."),
    mapping: Path | None = typer.Option(
        None, help="JSON list of {sourceColumn, targetColumn, confidence} overrides."
    ),
    rules: Path | None = typer.Option(None, help="JSON list of auto-categorization rules."),
    convert: bool = typer.Option(True, help="Convert foreign amounts to EUR."),
    output: Path | None = typer.Option(None, help="Write reviewed transactions as JSON."),
    commit: bool = typer.Option(False, help="Send the default selection to the sink."),
) -> None:
    """Transform, convert and de-duplicate a statement, then print the review."""

    raise typer.Exit(
        cmd_prepare(
            str(structure),
            kind=kind,
            account=account,
            mapping_path=str(mapping) if mapping else None,
            rules_path=str(rules) if rules else None,
            convert=convert,
            output_path=str(output) if output else None,
            commit=commit,
        )
    )


@app.callback()
def _root() -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)
    configure_logging()


if __name__ == "__main__":  # pragma: no cover
    app()
