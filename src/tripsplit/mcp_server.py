"""MCP server for TripSplit: exposes the ledger operations as tools."""

import logging

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .db import Database
from .exceptions import NoSuchBalanceError, TripSplitError
from .service import LedgerService

logger = logging.getLogger(__name__)

WORKFLOW_INSTRUCTIONS = """\
You are keeping the books for a group of people sharing trip expenses.

1. Call list_users and list_trips to learn the IDs you need. Register missing
   people with register_user and missing trips with create_trip.

2. For each expense, call record_expense with the payer and every person who
   shared it (include the payer if they also consumed their share).

3. When someone pays another person back, call record_payment with the
   payer as from_id and the recipient as to_id.

4. Call list_balances to report who owes whom.

Amounts are plain numbers with two decimals.\
"""


def create_server(service: LedgerService) -> FastMCP:
    """
    Build an MCP server whose tools operate on the given service.

    Args:
        service: Ledger service owning the store connection

    Returns:
        Configured FastMCP application
    """
    mcp_app = FastMCP("tripsplit")

    @mcp_app.tool()
    def register_user(name: str, email: str = "") -> str:
        """Register a person who can pay for or share expenses."""
        try:
            user_id = service.register_user(name, email)
            return f"Registered {name.strip()} with ID {user_id}."
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def create_trip(name: str) -> str:
        """Create a trip to group expenses under."""
        try:
            trip_id = service.create_trip(name)
            return f"Created trip {name.strip()} with ID {trip_id}."
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def list_trips() -> str:
        """List all trips with their IDs."""
        try:
            trips = list(service.list_trips())
            if not trips:
                return "No trips yet."
            return "\n".join(["Trips:"] + [f"  [{t.id}] {t.name}" for t in trips])
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def list_users() -> str:
        """List all users with their IDs and emails."""
        try:
            users = service.get_users()
            if not users:
                return "No users yet."
            lines = ["Users:"]
            for user in users:
                contact = f" <{user.email}>" if user.email else ""
                lines.append(f"  [{user.id}] {user.name}{contact}")
            return "\n".join(lines)
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def record_expense(
        description: str,
        total: str,
        payer_id: int,
        trip_id: int,
        participant_ids: list[int],
    ) -> str:
        """Record an expense split equally between participants.

        Args:
            description: What the expense was for.
            total: Total amount paid, e.g. "30" or "12.50".
            payer_id: ID of the user who paid.
            trip_id: ID of the trip the expense belongs to.
            participant_ids: IDs of everyone sharing the expense.
        """
        try:
            expense_id = service.record_expense(
                description, total, payer_id, trip_id, participant_ids
            )
            shares = service.get_expense_shares(expense_id)
            return (
                f"Recorded expense {expense_id}: {len(shares)} shares of "
                f"{shares[0].share:.2f}."
            )
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def record_payment(from_id: int, to_id: int, amount: str) -> str:
        """Record a payment that reduces what from_id owes to_id.

        Args:
            from_id: ID of the user paying.
            to_id: ID of the user being paid.
            amount: Amount paid.
        """
        try:
            result = service.record_payment(from_id, to_id, amount)
            if result.settled:
                return f"Balance from user {from_id} to user {to_id} is settled."
            return (
                f"Payment recorded. User {from_id} still owes user {to_id} "
                f"{result.remaining:.2f}."
            )
        except NoSuchBalanceError as e:
            return f"Nothing to settle: {e}"
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def list_balances() -> str:
        """Show who owes whom, with the IDs record_payment needs."""
        try:
            names = {user.id: user.name for user in service.get_users()}
            lines = [
                f"  {names[b.from_user]} owes {names[b.to_user]}: {b.amount:.2f} "
                f"(from_id={b.from_user}, to_id={b.to_user})"
                for b in service.get_balances()
            ]
            if not lines:
                return "Everyone is settled up."
            return "\n".join(["Balances:"] + lines)
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.tool()
    def list_expenses(trip_id: int | None = None) -> str:
        """List recorded expenses, optionally for one trip.

        Args:
            trip_id: Only list expenses of this trip.
        """
        try:
            expenses = list(service.list_expenses(trip_id))
            if not expenses:
                return "No expenses recorded."
            lines = [f"Expenses ({len(expenses)} total):"]
            for exp in expenses:
                lines.append(
                    f"  [{exp.id}] {exp.description} | {exp.total:.2f} | "
                    f"paid by user {exp.paid_by} | trip {exp.trip_id}"
                )
            return "\n".join(lines)
        except TripSplitError as e:
            return f"Error: {e}"

    @mcp_app.prompt()
    def bookkeeping_workflow() -> str:
        """Instructions for recording trip expenses and payments."""
        return WORKFLOW_INSTRUCTIONS

    return mcp_app


def run_server():
    """Start the MCP server (stdio transport)."""
    settings = load_settings()
    with Database(settings.database_path) as db:
        service = LedgerService(settings, db)
        logger.info(f"Serving ledger at {settings.database_path}")
        create_server(service).run(transport="stdio")
