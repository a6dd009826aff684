"""CLI for TripSplit using Typer."""

import logging
import sys
from decimal import Decimal
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .config import load_settings
from .db import Database
from .exceptions import NoSuchBalanceError, TripSplitError, ValidationError
from .mcp_server import run_server
from .service import LedgerService
from .ui import select_participants_interactive, select_trip_interactive

app = typer.Typer(
    name="tripsplit",
    help="Track shared trip expenses and who owes whom",
)

console = Console()

VerboseOption = typer.Option(False, "--verbose", "-v", help="Verbose output")


def setup_logging(verbose: bool = False, level_name: str = "INFO"):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(
        level=level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    )


def format_money(amount: Decimal) -> str:
    """Format an amount with thousands separators and two decimals."""
    return f"{amount:,.2f}"


def _run(verbose: bool, action):
    """
    Load settings, open the store, and run one command against the service.

    Errors are reported by type and turn into a non-zero exit code.
    """
    try:
        settings = load_settings()
        setup_logging(verbose, settings.log_level)
        with Database(settings.database_path) as db:
            return action(LedgerService(settings, db))
    except ValidationError as e:
        console.print(f"\n[bold yellow]⚠️  Invalid input:[/bold yellow] {e}\n")
        sys.exit(1)
    except NoSuchBalanceError as e:
        console.print(f"\n[yellow]{e}[/yellow]\n")
        sys.exit(1)
    except TripSplitError as e:
        console.print(f"\n[bold red]Error:[/bold red] {e}")
        if verbose:
            raise
        sys.exit(1)


@app.command("add-user")
def add_user(
    name: str = typer.Argument(..., help="Display name"),
    email: str = typer.Option("", "--email", "-e", help="Contact email"),
    verbose: bool = VerboseOption,
):
    """Register a new user."""

    def action(service: LedgerService):
        user_id = service.register_user(name, email)
        console.print(f"[green]✓ User added[/green] (id: {user_id})")

    _run(verbose, action)


@app.command("add-trip")
def add_trip(
    name: str = typer.Argument(..., help="Trip name"),
    verbose: bool = VerboseOption,
):
    """Create a new trip."""

    def action(service: LedgerService):
        trip_id = service.create_trip(name)
        console.print(f"[green]✓ Trip added[/green] (id: {trip_id})")

    _run(verbose, action)


@app.command()
def trips(verbose: bool = VerboseOption):
    """List all trips."""

    def action(service: LedgerService):
        table = Table(title="Trips", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Name", style="cyan")
        for trip in service.list_trips():
            table.add_row(str(trip.id), trip.name)
        console.print(table)

    _run(verbose, action)


@app.command("add-expense")
def add_expense(
    description: str = typer.Argument(..., help="What the expense was for"),
    amount: str = typer.Argument(..., help="Total amount paid"),
    payer: int = typer.Option(..., "--payer", "-p", help="ID of the user who paid"),
    trip: Optional[int] = typer.Option(None, "--trip", "-t", help="Trip ID"),
    participants: Optional[str] = typer.Option(
        None,
        "--participants",
        "-s",
        help="Comma-separated IDs of users sharing the expense (prompted if omitted)",
    ),
    verbose: bool = VerboseOption,
):
    """
    Record an expense split equally between participants.

    Every participant other than the payer ends up owing the payer their share.
    """

    def action(service: LedgerService):
        trip_id = trip
        if trip_id is None:
            trip_id = select_trip_interactive(list(service.list_trips()))
            if trip_id is None:
                console.print("[yellow]No trip selected.[/yellow]")
                return

        participant_ids: str | list[int] | None = participants
        if participant_ids is None:
            participant_ids = select_participants_interactive(
                service.get_users(), payer_id=payer
            )
            if not participant_ids:
                console.print("[yellow]No participants selected.[/yellow]")
                return

        expense_id = service.record_expense(
            description, amount, payer, trip_id, participant_ids
        )
        shares = service.get_expense_shares(expense_id)
        console.print(
            f"[green]✓ Expense recorded[/green] (id: {expense_id}, "
            f"{len(shares)} shares of {format_money(shares[0].share)})"
        )

    _run(verbose, action)


@app.command()
def pay(
    from_user: int = typer.Argument(..., help="ID of the user paying"),
    to_user: int = typer.Argument(..., help="ID of the user being paid"),
    amount: str = typer.Argument(..., help="Amount paid"),
    verbose: bool = VerboseOption,
):
    """Record a payment that reduces or settles a balance."""

    def action(service: LedgerService):
        result = service.record_payment(from_user, to_user, amount)
        if result.settled:
            console.print("[green]✓ Balance settled[/green]")
        else:
            console.print(
                f"[green]✓ Payment recorded[/green] "
                f"(remaining: {format_money(result.remaining)})"
            )

    _run(verbose, action)


@app.command()
def balances(verbose: bool = VerboseOption):
    """Show who owes whom."""

    def action(service: LedgerService):
        table = Table(title="Balances", show_header=True, header_style="bold magenta")
        table.add_column("Debtor", style="cyan")
        table.add_column("Creditor", style="cyan")
        table.add_column("Amount", justify="right", style="red")

        rows = 0
        for line in service.list_balances():
            table.add_row(line.debtor_name, line.creditor_name, format_money(line.amount))
            rows += 1

        if not rows:
            console.print("[green]All settled up.[/green]")
            return
        console.print(table)

    _run(verbose, action)


@app.command()
def users(verbose: bool = VerboseOption):
    """List all registered users."""

    def action(service: LedgerService):
        table = Table(title="Users", show_header=True, header_style="bold magenta")
        table.add_column("Name", style="cyan")
        table.add_column("Email", style="dim")
        for line in service.list_users():
            table.add_row(line.name, line.email)
        console.print(table)

    _run(verbose, action)


@app.command()
def expenses(
    trip: Optional[int] = typer.Option(None, "--trip", "-t", help="Only this trip"),
    verbose: bool = VerboseOption,
):
    """List recorded expenses."""

    def action(service: LedgerService):
        table = Table(title="Expenses", show_header=True, header_style="bold magenta")
        table.add_column("ID", style="dim", justify="right")
        table.add_column("Description", style="cyan", width=40)
        table.add_column("Total", justify="right")
        table.add_column("Paid by")
        table.add_column("Trip", justify="right", style="dim")
        payers: dict[int, str] = {}
        for expense in service.list_expenses(trip):
            if expense.paid_by not in payers:
                payer = service.get_user(expense.paid_by)
                payers[expense.paid_by] = payer.name if payer else str(expense.paid_by)
            table.add_row(
                str(expense.id),
                expense.description,
                format_money(expense.total),
                payers[expense.paid_by],
                str(expense.trip_id),
            )
        console.print(table)

    _run(verbose, action)


@app.command()
def mcp():
    """Start the MCP server exposing the ledger as tools."""
    run_server()


if __name__ == "__main__":
    app()
