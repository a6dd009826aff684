"""TripSplit - Track shared trip expenses and who owes whom."""

__version__ = "0.1.0"

from .config import Settings, load_settings
from .db import Database
from .exceptions import (
    NoSuchBalanceError,
    StoreError,
    TripSplitError,
    ValidationError,
)
from .ledger import BalanceEngine, split_expense
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
from .service import LedgerService

__all__ = [
    "Settings",
    "load_settings",
    "Database",
    "NoSuchBalanceError",
    "StoreError",
    "TripSplitError",
    "ValidationError",
    "BalanceEngine",
    "split_expense",
    "Balance",
    "BalanceLine",
    "Expense",
    "ExpenseShare",
    "PaymentResult",
    "Trip",
    "User",
    "UserLine",
    "LedgerService",
]
