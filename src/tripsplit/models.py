"""Pydantic domain models for TripSplit."""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Literal

from pydantic import BaseModel, Field

CENT = Decimal("0.01")

# Largest value a SQLite INTEGER column holds (ids and cents)
MAX_STORED_INTEGER = 2**63 - 1


def to_cents(amount: Decimal) -> int:
    """
    Convert a Decimal amount to integer minor units (cents).
    Uses ROUND_HALF_UP for consistency.
    """
    cents = amount * 100
    return int(cents.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer minor units back to a two-place Decimal."""
    return (Decimal(cents) / 100).quantize(CENT)


# ============================================================================
# Stored entities
# ============================================================================


class User(BaseModel):
    """A registered person who can pay for or share expenses."""

    id: int
    name: str
    email: str = ""


class Trip(BaseModel):
    """A named group of expenses. Trips tag expenses; they do not split balances."""

    id: int
    name: str


class Expense(BaseModel):
    """An expense paid by one user and shared by several."""

    id: int
    description: str
    total: Decimal
    paid_by: int
    trip_id: int
    created_at: datetime = Field(default_factory=datetime.now)


class ExpenseShare(BaseModel):
    """One participant's portion of an expense."""

    expense_id: int
    user_id: int
    share: Decimal


class Balance(BaseModel):
    """A directed debt: from_user owes to_user the given amount."""

    from_user: int
    to_user: int
    amount: Decimal


# ============================================================================
# Read models
# ============================================================================


class BalanceLine(BaseModel):
    """A balance resolved to user names for display."""

    debtor_name: str
    creditor_name: str
    amount: Decimal


class UserLine(BaseModel):
    """A user as shown in listings."""

    name: str
    email: str


class PaymentResult(BaseModel):
    """Outcome of applying a payment to a balance.

    outcome:
    - settled: the balance reached zero or below and its row was deleted.
               Any over-payment is discarded, not carried to the inverse pair.
    - reduced: the balance is still positive and holds ``remaining``.
    """

    from_user: int
    to_user: int
    paid: Decimal
    remaining: Decimal
    outcome: Literal["settled", "reduced"]

    @property
    def settled(self) -> bool:
        """True when the balance row was removed."""
        return self.outcome == "settled"
