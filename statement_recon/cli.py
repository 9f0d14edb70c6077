"""CLI for the ``statement_recon`` package.

A thin Typer host around :class:`~statement_recon.session.ReviewSession`.
Environment variables (``STATEMENT_RECON_LOG_LEVEL``,
``STATEMENT_RECON_STORE_DIR``) are loaded from a local ``.env`` via
``python-dotenv`` before any command runs. Business logic lives in the
package modules; commands only read JSON, call them, and render results.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any

import typer
from dotenv import load_dotenv
from rich.console import Console
from rich.table import Table

from .amounts import parse_amount
from .logging_setup import configure_logging

_console = Console()


def _fail(message: str) -> typer.Exit:
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(1)


def _load_json(path: Path) -> Any:
    try:
        with path.open(encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        raise _fail(f"File not found: {path}") from None
    except PermissionError:
        raise _fail(f"Permission denied: {path}") from None
    except json.JSONDecodeError as e:
        raise _fail(f"Failed to parse JSON in {path}: {e}") from None


def _session_from(path: Path, month: str | None, deselect: list[str]):
    from .session import ReviewSession

    document = _load_json(path)
    if not isinstance(document, dict):
        raise _fail(f"{path} must contain a JSON object")
    session = ReviewSession.from_document(document, month=month)
    for key in deselect:
        main, _, sub = key.partition("::")
        session.toggle_all(main, sub or None)
    return session


def _money(n: float) -> str:
    return f"${n:,.2f}"


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="Reconcile extracted bank-statement categories against reported deposits.",
)

DESELECT_OPTION = typer.Option(
    "--deselect",
    help="Exclude every row of a 'Main::Sub' key (repeatable; 'Main' for flat categories).",
)


@app.callback()
def _root(
    log_level: Annotated[str | None, typer.Option(help="Logging level (e.g. DEBUG, INFO).")] = None,
) -> None:
    load_dotenv()
    configure_logging(log_level)


@app.command("summarize")
def summarize_cmd(
    document_path: Annotated[Path, typer.Argument(help="Statement document JSON file.")],
    month: Annotated[str | None, typer.Option(help="Month key to review when several are present.")] = None,
    deselect: Annotated[list[str] | None, DESELECT_OPTION] = None,
) -> None:
    """Print category totals and the revenue reconciliation for a document."""

    session = _session_from(document_path, month, deselect or [])
    result = session.reconcile()

    table = Table(title=f"Categories {session.month or ''}".strip())
    table.add_column("Main category")
    table.add_column("Subcategories", justify="right")
    table.add_column("Total", justify="right")
    table.add_column("Effective", justify="right")
    for view in session.main_categories():
        table.add_row(
            view.name,
            f"{view.included_subcategories}/{view.subcategory_count}",
            _money(view.total),
            _money(view.effective_total),
        )
    _console.print(table)

    _console.print(f"Total deposits:        {_money(parse_amount(session.reported_total_deposits))}")
    _console.print(f"Total from categories: {_money(result.selected_total_from_categories)}")
    _console.print(f"Difference:            {_money(result.difference)}")
    _console.print(f"Net difference shown:  {_money(result.displayed_difference)}")
    if session.mca_items:
        hb = session.holdback()
        _console.print(f"Holdback:              {hb.holdback_percent:.1f}%")


@app.command("holdback")
def holdback_cmd(
    funders_path: Annotated[Path, typer.Argument(help="Funder records JSON file.")],
    revenue: Annotated[str, typer.Option(help="Monthly revenue to measure against.")],
    select: Annotated[
        list[int] | None, typer.Option("--select", help="Funder index to include (repeatable; default all).")
    ] = None,
) -> None:
    """Compute the holdback percentage for a set of funder records."""

    from .funders import compute_holdback, normalize_funder_records

    items = normalize_funder_records(_load_json(funders_path))
    result = compute_holdback(items, set(select) if select else None, revenue)

    table = Table(title="Funders")
    table.add_column("#", justify="right")
    table.add_column("Period")
    table.add_column("Funder")
    table.add_column("Frequency")
    table.add_column("Amount", justify="right")
    table.add_column("Daily", justify="right")
    for i, item in enumerate(items):
        if select and i not in select:
            continue
        table.add_row(
            str(i),
            item.period,
            item.funder,
            item.frequency,
            _money(item.raw_amount),
            _money(item.daily_equivalent_amount),
        )
    _console.print(table)
    _console.print(f"Total funders: {_money(result.total_funders)}")
    _console.print(f"Subtotal:      {_money(result.subtotal)}")
    _console.print(f"Holdback:      {result.holdback_percent:.1f}%")


@app.command("overview")
def overview_cmd(
    documents_path: Annotated[Path, typer.Argument(help="JSON array of statement documents.")],
) -> None:
    """Print deposits and negative days per month across statements."""

    from .documents import monthly_overview

    documents = _load_json(documents_path)
    if not isinstance(documents, list):
        raise _fail(f"{documents_path} must contain a JSON array")
    overview = monthly_overview(documents)

    table = Table(title="Financial overview")
    table.add_column("Month")
    table.add_column("Statements", justify="right")
    table.add_column("Total deposits", justify="right")
    table.add_column("Negative days", justify="right")
    for row in overview.values():
        table.add_row(row.month, str(row.statement_count), _money(row.total_deposits), f"{row.negative_days:g}")
    _console.print(table)
    _console.print(f"Total deposits: {_money(sum(r.total_deposits for r in overview.values()))}")


@app.command("save")
def save_cmd(
    document_path: Annotated[Path, typer.Argument(help="Statement document JSON file.")],
    document_id: Annotated[str | None, typer.Option(help="Override the document identifier.")] = None,
    month: Annotated[str | None, typer.Option(help="Month key to review when several are present.")] = None,
    store_dir: Annotated[Path | None, typer.Option(help="Store root (default: STATEMENT_RECON_STORE_DIR).")] = None,
    deselect: Annotated[list[str] | None, DESELECT_OPTION] = None,
) -> None:
    """Write the reconciliation save payload for a document."""

    from .persistence import JsonFileStore

    session = _session_from(document_path, month, deselect or [])
    if document_id:
        session.document_id = document_id
    store = JsonFileStore(store_dir)
    try:
        payload = session.save(store)
    except ValueError as e:
        raise _fail(str(e)) from None
    except OSError as e:
        raise _fail(f"failed to write save payload: {e}") from None
    typer.echo(f"Saved {payload.document_id}: difference {_money(payload.difference)} -> {store.path_for(payload.document_id)}")


def main() -> None:
    app()
