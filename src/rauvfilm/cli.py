"""Command-line interface for rauvfilm operators."""

import asyncio
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from rauvfilm.bookings.service import booking_service
from rauvfilm.errors import RauvError
from rauvfilm.logging_config import configure_logging, get_logger
from rauvfilm.pricing.balance import format_krw
from rauvfilm.reviews.urls import normalize_review_url
from rauvfilm.reviews.verification import verification_message, verify_review
from rauvfilm.storage.db import db
from rauvfilm.sync.synchronizer import dual_record_sync

# Configure logging
configure_logging()
logger = get_logger(__name__)

app = typer.Typer(
    name="rauvfilm",
    help="rauvfilm - reservation discounts, referrals and review verification",
    no_args_is_help=True,
)

console = Console()


@app.command("init")
def init_database() -> None:
    """Initialize the database and create tables."""
    console.print("[bold blue]Initializing database...[/bold blue]")
    db.create_tables()
    console.print("[bold green]✓[/bold green] Database initialized successfully")


@app.command("balance")
def show_balance(
    reservation_id: Annotated[int, typer.Argument(help="Reservation ID")],
) -> None:
    """Show the itemized balance of a reservation."""
    try:
        breakdown = booking_service.get_balance(reservation_id)
    except RauvError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    table = Table(title=f"Reservation {reservation_id}")
    table.add_column("Item", style="cyan")
    table.add_column("Amount", justify="right")
    table.add_row("List price", format_krw(breakdown.list_price))
    table.add_row("Travel fee", format_krw(breakdown.travel_fee))
    table.add_row("Deposit", f"-{format_krw(breakdown.deposit_amount)}")
    for label, amount in (
        ("Event discount", breakdown.event_discount),
        ("New year discount", breakdown.new_year_discount),
        ("Special discount", breakdown.special_discount),
        ("Referral discount", breakdown.referral_discount),
        ("Review discount", breakdown.review_discount),
    ):
        if amount:
            table.add_row(label, f"-{format_krw(amount)}")
    table.add_row("[bold]Final balance[/bold]", f"[bold]{format_krw(breakdown.final_balance)}[/bold]")
    console.print(table)


@app.command("reconcile")
def reconcile(
    repair: Annotated[bool, typer.Option("--repair", help="Recompute and re-mirror drifted records")] = False,
) -> None:
    """Compare every reservation with its booking twin."""
    drifts = dual_record_sync.reconcile(repair=repair)

    if not drifts:
        console.print("[bold green]✓[/bold green] No drift found")
        return

    table = Table(title="Drift")
    table.add_column("Reservation", style="cyan")
    table.add_column("Booking")
    table.add_column("Field", style="green")
    table.add_column("Expected", justify="right")
    table.add_column("Actual", justify="right")
    for drift in drifts:
        table.add_row(
            str(drift.reservation_id),
            str(drift.booking_id or "-"),
            drift.field,
            str(drift.expected),
            str(drift.actual),
        )
    console.print(table)

    if repair:
        console.print(f"[bold green]✓[/bold green] Repaired {len(drifts)} field(s)")
    else:
        console.print(f"[yellow]{len(drifts)} field(s) drifted. Run with --repair to fix.[/yellow]")


@app.command("verify-url")
def verify_url(
    url: Annotated[str, typer.Argument(help="Review URL")],
) -> None:
    """Run automatic verification on a review URL without saving anything."""
    console.print(f"[bold]Normalized:[/bold] {normalize_review_url(url)}")
    result = asyncio.run(verify_review(url))

    console.print(f"[bold]Platform:[/bold] {result.platform.value}")
    console.print(f"[bold]Status:[/bold] {result.status.value}")
    if result.title is not None:
        console.print(f"[bold]Title:[/bold] {result.title}")
    if result.character_count is not None:
        console.print(f"[bold]Characters:[/bold] {result.character_count}")
    console.print(verification_message(result))


if __name__ == "__main__":
    app()
