"""Service layer that composes ledger store and balance engine operations.

Each public method is one logical operation. Input is validated before the
store is touched, and multi-step writes run inside a single store
transaction so a failure part way through leaves nothing behind.
"""

import logging
from collections.abc import Iterable, Iterator
from decimal import Decimal

from .config import Settings
from .db import Database
from .exceptions import ValidationError
from .ledger import BalanceEngine, split_expense, split_residual
from .models import (
    Balance,
    BalanceLine,
    Expense,
    ExpenseShare,
    PaymentResult,
    Trip,
    User,
    UserLine,
)
from .validators import (
    parse_amount,
    parse_id,
    parse_participant_ids,
    validate_name,
)

logger = logging.getLogger(__name__)


class LedgerService:
    """Service for recording shared expenses and payments."""

    def __init__(self, settings: Settings, database: Database):
        """Initialize the ledger service."""
        self.settings = settings
        self.db = database
        self.engine = BalanceEngine(
            database, net_reverse=settings.net_reverse_balances
        )

    # ========================================================================
    # Users and trips
    # ========================================================================

    def register_user(self, name: str, email: str = "") -> int:
        """
        Register a new user.

        Returns:
            The new user's ID

        Raises:
            ValidationError: If the name is empty
        """
        name = validate_name(name)
        user_id = self.db.insert_user(name, (email or "").strip())
        logger.info(f"Registered user {user_id}: {name}")
        return user_id

    def create_trip(self, name: str) -> int:
        """
        Create a new trip.

        Returns:
            The new trip's ID

        Raises:
            ValidationError: If the name is empty
        """
        name = validate_name(name, field="Trip name")
        trip_id = self.db.insert_trip(name)
        logger.info(f"Created trip {trip_id}: {name}")
        return trip_id

    # ========================================================================
    # Expenses and payments
    # ========================================================================

    def record_expense(
        self,
        description: str,
        total: Decimal | int | float | str,
        payer_id: int | str,
        trip_id: int | str,
        participant_ids: str | Iterable[int | str],
    ) -> int:
        """
        Record an expense and update balances.

        Every participant gets a share row. Every participant other than the
        payer owes the payer their share.

        Args:
            description: What the expense was for
            total: Expense total
            payer_id: User who paid
            trip_id: Trip the expense belongs to
            participant_ids: Users sharing the expense, as a list or a
                             comma-separated string

        Returns:
            The new expense ID

        Raises:
            ValidationError: If any input is malformed (nothing is written)
            StoreError: If the store rejects a write (everything is rolled back)
        """
        amount = parse_amount(total, field="Total")
        payer = parse_id(payer_id, field="Payer ID")
        trip = parse_id(trip_id, field="Trip ID")
        participants = parse_participant_ids(participant_ids)
        share = split_expense(amount, participants)
        description = (description or "").strip()

        with self.db.transaction():
            expense_id = self.db.insert_expense(description, amount, payer, trip)

            for participant in participants:
                self.db.insert_share(expense_id, participant, share)

            for participant in participants:
                if participant == payer:
                    continue
                self.engine.accrue_debt(participant, payer, share)

        residual = split_residual(amount, share, len(participants))
        if residual:
            logger.info(
                f"Expense {expense_id}: shares of {share} differ from total "
                f"{amount} by {residual}"
            )

        logger.info(
            f"Recorded expense {expense_id} '{description}' ({amount}) paid by "
            f"user {payer}, split {len(participants)} ways"
        )
        return expense_id

    def record_payment(
        self,
        from_id: int | str,
        to_id: int | str,
        amount: Decimal | int | float | str,
    ) -> PaymentResult:
        """
        Record a payment from one user to another.

        Returns:
            The payment result (settled or reduced)

        Raises:
            ValidationError: If the amount is not positive or the users match
            NoSuchBalanceError: If from_id owes to_id nothing
        """
        paid = parse_amount(amount)
        debtor = parse_id(from_id, field="From user ID")
        creditor = parse_id(to_id, field="To user ID")
        if debtor == creditor:
            raise ValidationError("A payment needs two different users")

        result = self.engine.settle_debt(debtor, creditor, paid)

        logger.info(
            f"Recorded payment of {paid} from user {debtor} to user {creditor}: "
            f"{result.outcome} (remaining {result.remaining})"
        )
        return result

    # ========================================================================
    # Queries
    # ========================================================================

    def list_balances(self) -> Iterator[BalanceLine]:
        """Yield (debtor name, creditor name, amount) for every balance."""
        yield from self.db.get_balance_lines()

    def list_users(self) -> Iterator[UserLine]:
        """Yield (name, email) for every user."""
        yield from self.db.get_user_lines()

    def get_users(self) -> list[User]:
        """Get all users in registration order."""
        return self.db.get_all_users()

    def get_user(self, user_id: int) -> User | None:
        """Get one user, or None if the id is unknown."""
        return self.db.get_user(user_id)

    def list_trips(self) -> Iterator[Trip]:
        """Yield every trip."""
        yield from self.db.get_all_trips()

    def list_expenses(self, trip_id: int | None = None) -> Iterator[Expense]:
        """Yield expenses in creation order, optionally for a single trip."""
        yield from self.db.get_expenses(trip_id)

    def get_expense_shares(self, expense_id: int) -> list[ExpenseShare]:
        """Get the share rows of one expense."""
        return self.db.get_expense_shares(expense_id)

    def get_balances(self) -> list[Balance]:
        """Get every balance row with user ids, ordered by pair."""
        return self.db.get_all_balances()

    def get_balance(self, debtor: int, creditor: int) -> Decimal:
        """Get what debtor owes creditor, zero when there is no balance."""
        return self.db.get_balance(debtor, creditor) or Decimal("0.00")
