"""Mini README: Command line entry point for the fuel card tracker.

This script exposes a Typer CLI that serves the FastAPI application with
uvicorn and lets users operate on their cards directly from a terminal. Every
balance change asks for confirmation first (skip with ``--yes``), mirroring the
confirmation dialogs of the mobile screens.
"""

from __future__ import annotations

from typing import NoReturn, Optional

import typer
import uvicorn

from fuelcard.bootstrap import FuelCardServices, build_services
from fuelcard.configuration import get_settings
from fuelcard.ledger import CardLedger, LedgerError, Money, Outcome, TransactionKind
from fuelcard.logging_utils import configure_root_logger
from fuelcard.utils.display import (
    confirmation_prompt,
    describe_record,
    format_money,
    format_quantity,
    format_timestamp,
)

cli = typer.Typer(help="Track prepaid fuel card balances and history.")

services_factory = build_services


def _fail(message: str) -> NoReturn:
    typer.secho(message, fg=typer.colors.RED, err=True)
    raise typer.Exit(code=1)


def _parse(text: str) -> Money:
    try:
        return Money.parse(text)
    except LedgerError as error:
        _fail(str(error))


def _ledger(services: FuelCardServices, card: Optional[str]) -> CardLedger:
    card_id = card or services.selection.selected()
    if not card_id:
        _fail("No card selected. Use 'select' or pass --card.")
    try:
        return services.store.get(card_id)
    except KeyError:
        _fail(f"Card {card_id} is not registered")
    except LedgerError as error:
        _fail(str(error))


def _report(outcome: Outcome, currency: str) -> None:
    if not outcome.ok:
        _fail(str(outcome.error))
    record = outcome.value
    typer.echo(describe_record(record, currency))
    if record.quantity is not None:
        typer.echo(f"Fuel: {format_quantity(record.quantity)}")


@cli.command()
def serve(
    host: str = typer.Option(None, help="Host interface to bind."),
    port: int = typer.Option(None, help="Port to listen on."),
    production: bool = typer.Option(
        False, help="Use production server settings (disable auto-reload)."
    ),
) -> None:
    """Start the FastAPI application using uvicorn."""

    settings = get_settings()
    effective_host = host or settings.interface_host
    effective_port = port or settings.interface_port
    configure_root_logger(settings.effective_log_level)

    # 0.0.0.0 is not a browsable address, so point users at localhost instead.
    browser_host = "127.0.0.1" if effective_host in {"0.0.0.0", "::"} else effective_host
    typer.echo(
        f"Starting fuel card tracker ({settings.settlement_mode} mode) on "
        f"{effective_host}:{effective_port}.\n"
        f"API available at http://{browser_host}:{effective_port}"
    )
    uvicorn.run(
        "fuelcard.interface.web_app:create_application",
        host=effective_host,
        port=effective_port,
        factory=True,
        reload=not production,
    )


@cli.command()
def cards() -> None:
    """List cards with their balances."""

    services = services_factory()
    currency = services.settings.currency_symbol
    selected = services.selection.selected()
    try:
        summaries = services.store.list_cards()
    except LedgerError as error:
        _fail(str(error))
    for summary in summaries:
        marker = "*" if summary.card_id == selected else " "
        typer.echo(
            f"{marker} [{summary.card_id}] {summary.display_name}: "
            f"{format_money(summary.balance, currency)}"
        )


@cli.command("add-card")
def add_card(name: str, balance: str) -> None:
    """Register a new card with an initial balance."""

    services = services_factory()
    outcome = services.store.add_card(name, _parse(balance))
    if not outcome.ok:
        _fail(str(outcome.error))
    summary = outcome.value
    typer.echo(f"Card added: [{summary.card_id}] {summary.display_name}")


@cli.command()
def select(card_id: str) -> None:
    """Make ``card_id`` the active card."""

    services = services_factory()
    try:
        services.selection.select(card_id, services.store.card_ids())
    except KeyError:
        _fail(f"Card {card_id} is not registered")
    typer.echo(f"Selected card {card_id}")


@cli.command()
def deselect() -> None:
    """Forget the active card and return to card selection."""

    services_factory().selection.clear()
    typer.echo("Card selection cleared")


@cli.command()
def balance(card: Optional[str] = typer.Option(None, help="Card identifier.")) -> None:
    """Show the balance and recent transactions."""

    services = services_factory()
    ledger = _ledger(services, card)
    currency = services.settings.currency_symbol
    typer.echo(f"{ledger.display_name}: {format_money(ledger.current_balance(), currency)}")
    recent = ledger.recent(services.settings.recent_transactions)
    if not recent:
        typer.echo("No transaction yet")
    for record in recent:
        typer.echo(f"  {format_timestamp(record.timestamp)}  {describe_record(record, currency)}")


@cli.command("top-up")
def top_up(
    amount: str,
    card: Optional[str] = typer.Option(None, help="Card identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Add money to the card."""

    services = services_factory()
    ledger = _ledger(services, card)
    currency = services.settings.currency_symbol
    value = _parse(amount)
    if not yes:
        typer.confirm(confirmation_prompt(TransactionKind.TOP_UP, value, currency), abort=True)
    _report(ledger.top_up(value), currency)


@cli.command()
def spend(
    amount: str,
    unit_price: Optional[str] = typer.Option(None, help="Fuel price per litre."),
    card: Optional[str] = typer.Option(None, help="Card identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Buy fuel with the card."""

    services = services_factory()
    ledger = _ledger(services, card)
    currency = services.settings.currency_symbol
    value = _parse(amount)
    price = _parse(unit_price) if unit_price else None
    if not yes:
        typer.confirm(confirmation_prompt(TransactionKind.SPEND, value, currency), abort=True)
    _report(ledger.spend(value, price), currency)


@cli.command("set-balance")
def set_balance(
    amount: str,
    card: Optional[str] = typer.Option(None, help="Card identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Overwrite the balance (local mode only)."""

    services = services_factory()
    ledger = _ledger(services, card)
    currency = services.settings.currency_symbol
    value = _parse(amount)
    if not yes:
        typer.confirm(
            confirmation_prompt(TransactionKind.MANUAL_SET, value, currency), abort=True
        )
    _report(ledger.set_balance_directly(value), currency)


@cli.command("clear-history")
def clear_history(
    card: Optional[str] = typer.Option(None, help="Card identifier."),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt."),
) -> None:
    """Delete the whole history of the card (local mode only)."""

    services = services_factory()
    ledger = _ledger(services, card)
    if not yes:
        typer.confirm("History will be deleted completely. Are you sure?", abort=True)
    outcome = ledger.clear_history()
    if not outcome.ok:
        _fail(str(outcome.error))
    typer.echo(f"Removed {outcome.value} records")


@cli.command()
def history(
    page: int = typer.Option(1, help="Page number, starting at 1."),
    card: Optional[str] = typer.Option(None, help="Card identifier."),
) -> None:
    """Show one page of the transaction history."""

    services = services_factory()
    ledger = _ledger(services, card)
    currency = services.settings.currency_symbol
    current = services.pager.page(ledger.history_snapshot(), page)
    typer.echo(
        f"{ledger.display_name} balance: {format_money(ledger.current_balance(), currency)}"
        f" ({current.total_records} transactions)"
    )
    if not current.records:
        typer.echo("No transaction yet")
    for record in current.records:
        line = f"  {format_timestamp(record.timestamp)}  {describe_record(record, currency)}"
        if record.quantity is not None:
            line += f" ({format_quantity(record.quantity)})"
        typer.echo(line)
    typer.echo(f"Page {current.number} / {current.total_pages}")


if __name__ == "__main__":
    cli()
