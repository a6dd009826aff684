"""SQLite database operations for TripSplit."""

import logging
import sqlite3
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from decimal import Decimal
from pathlib import Path
from typing import Any

from .exceptions import StoreError
from .models import (
    Balance,
    BalanceLine,
    Expense,
    ExpenseShare,
    Trip,
    User,
    UserLine,
    from_cents,
    to_cents,
)

logger = logging.getLogger(__name__)


class Database:
    """SQLite ledger store.

    The connection is owned by this object and shared by every caller that
    holds it. All access goes through a re-entrant lock; ``transaction()``
    holds that lock for the whole scope so read-modify-write sequences on
    balances cannot interleave.
    """

    def __init__(self, db_path: Path | str):
        """Initialize database connection."""
        self.db_path = db_path
        self._lock = threading.RLock()
        self._depth = 0
        try:
            # Transactions are managed explicitly in transaction()
            self.conn = sqlite3.connect(
                str(db_path), isolation_level=None, check_same_thread=False
            )
        except sqlite3.Error as e:
            raise StoreError(f"Could not open database at {db_path}: {e}") from e
        self.conn.row_factory = sqlite3.Row
        self._execute("PRAGMA foreign_keys = ON")
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        with self.transaction():
            self._execute(
                """
                CREATE TABLE IF NOT EXISTS users (
                    user_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL,
                    email TEXT NOT NULL DEFAULT ''
                )
            """
            )

            self._execute(
                """
                CREATE TABLE IF NOT EXISTS trips (
                    trip_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    name TEXT NOT NULL
                )
            """
            )

            self._execute(
                """
                CREATE TABLE IF NOT EXISTS expenses (
                    expense_id INTEGER PRIMARY KEY AUTOINCREMENT,
                    description TEXT NOT NULL,
                    total_cents INTEGER NOT NULL CHECK (total_cents > 0),
                    paid_by INTEGER NOT NULL REFERENCES users(user_id),
                    trip_id INTEGER NOT NULL REFERENCES trips(trip_id),
                    created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
                )
            """
            )

            # One row per (expense, participant)
            self._execute(
                """
                CREATE TABLE IF NOT EXISTS participants (
                    expense_id INTEGER NOT NULL REFERENCES expenses(expense_id),
                    user_id INTEGER NOT NULL REFERENCES users(user_id),
                    share_cents INTEGER NOT NULL,
                    PRIMARY KEY (expense_id, user_id)
                )
            """
            )

            # At most one row per ordered pair
            self._execute(
                """
                CREATE TABLE IF NOT EXISTS balances (
                    from_user INTEGER NOT NULL REFERENCES users(user_id),
                    to_user INTEGER NOT NULL REFERENCES users(user_id),
                    amount_cents INTEGER NOT NULL CHECK (amount_cents > 0),
                    PRIMARY KEY (from_user, to_user),
                    CHECK (from_user <> to_user)
                )
            """
            )

    def close(self):
        """Close database connection."""
        with self._lock:
            self.conn.close()

    def __enter__(self):
        """Context manager entry."""
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Context manager exit."""
        self.close()

    def _execute(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Cursor:
        """Run one statement, translating driver errors into StoreError."""
        try:
            return self.conn.execute(sql, params)
        except (sqlite3.Error, OverflowError) as e:
            # OverflowError: an int parameter past the 64-bit INTEGER range
            raise StoreError(str(e)) from e

    def _fetchall(self, sql: str, params: tuple[Any, ...] = ()) -> list[sqlite3.Row]:
        with self._lock:
            cursor = self._execute(sql, params)
            try:
                return cursor.fetchall()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e

    def _fetchone(self, sql: str, params: tuple[Any, ...] = ()) -> sqlite3.Row | None:
        with self._lock:
            cursor = self._execute(sql, params)
            try:
                row: sqlite3.Row | None = cursor.fetchone()
            except sqlite3.Error as e:
                raise StoreError(str(e)) from e
            return row

    @contextmanager
    def transaction(self) -> Iterator["Database"]:
        """
        Run a block of store operations as one atomic unit.

        The outermost scope begins and commits the transaction; nested scopes
        join it. Any exception rolls back everything written since the
        outermost scope began and is re-raised.
        """
        with self._lock:
            outermost = self._depth == 0
            if outermost:
                self._execute("BEGIN IMMEDIATE")
            self._depth += 1
            try:
                yield self
            except BaseException:
                self._depth -= 1
                if outermost and self.conn.in_transaction:
                    self._execute("ROLLBACK")
                    logger.debug("Rolled back transaction")
                raise
            else:
                self._depth -= 1
                if outermost:
                    self._execute("COMMIT")

    # ========================================================================
    # User operations
    # ========================================================================

    def insert_user(self, name: str, email: str) -> int:
        """Insert a user and return its generated id."""
        with self.transaction():
            cursor = self._execute(
                "INSERT INTO users (name, email) VALUES (?, ?)", (name, email)
            )
        row_id = cursor.lastrowid
        if row_id is None:
            raise StoreError("Failed to insert user record")
        return row_id

    def get_user(self, user_id: int) -> User | None:
        """Get a user by id."""
        row = self._fetchone(
            "SELECT user_id, name, email FROM users WHERE user_id = ?", (user_id,)
        )
        if not row:
            return None
        return User(id=row["user_id"], name=row["name"], email=row["email"])

    def get_all_users(self) -> list[User]:
        """Get all users in registration order."""
        return [
            User(id=row["user_id"], name=row["name"], email=row["email"])
            for row in self._fetchall(
                "SELECT user_id, name, email FROM users ORDER BY user_id"
            )
        ]

    def get_user_lines(self) -> list[UserLine]:
        """Get (name, email) for every user."""
        return [
            UserLine(name=row["name"], email=row["email"])
            for row in self._fetchall("SELECT name, email FROM users")
        ]

    # ========================================================================
    # Trip operations
    # ========================================================================

    def insert_trip(self, name: str) -> int:
        """Insert a trip and return its generated id."""
        with self.transaction():
            cursor = self._execute("INSERT INTO trips (name) VALUES (?)", (name,))
        row_id = cursor.lastrowid
        if row_id is None:
            raise StoreError("Failed to insert trip record")
        return row_id

    def get_all_trips(self) -> list[Trip]:
        """Get all trips."""
        return [
            Trip(id=row["trip_id"], name=row["name"])
            for row in self._fetchall("SELECT trip_id, name FROM trips ORDER BY trip_id")
        ]

    # ========================================================================
    # Expense operations
    # ========================================================================

    def insert_expense(
        self, description: str, total: Decimal, paid_by: int, trip_id: int
    ) -> int:
        """Insert an expense and return its generated id."""
        with self.transaction():
            cursor = self._execute(
                """
                INSERT INTO expenses (
                    description, total_cents, paid_by, trip_id, created_at
                ) VALUES (?, ?, ?, ?, ?)
                """,
                (
                    description,
                    to_cents(total),
                    paid_by,
                    trip_id,
                    datetime.now().isoformat(),
                ),
            )
        row_id = cursor.lastrowid
        if row_id is None:
            raise StoreError("Failed to insert expense record")
        return row_id

    def insert_share(self, expense_id: int, user_id: int, share: Decimal):
        """Insert one participant share row."""
        with self.transaction():
            self._execute(
                """
                INSERT INTO participants (expense_id, user_id, share_cents)
                VALUES (?, ?, ?)
                """,
                (expense_id, user_id, to_cents(share)),
            )

    def get_expenses(self, trip_id: int | None = None) -> list[Expense]:
        """Get expenses in creation order, optionally for a single trip."""
        sql = """
            SELECT expense_id, description, total_cents, paid_by, trip_id,
                   created_at
            FROM expenses
        """
        params: tuple[Any, ...] = ()
        if trip_id is not None:
            sql += " WHERE trip_id = ?"
            params = (trip_id,)
        sql += " ORDER BY created_at, expense_id"

        return [
            Expense(
                id=row["expense_id"],
                description=row["description"],
                total=from_cents(row["total_cents"]),
                paid_by=row["paid_by"],
                trip_id=row["trip_id"],
                created_at=datetime.fromisoformat(row["created_at"]),
            )
            for row in self._fetchall(sql, params)
        ]

    def get_expense_shares(self, expense_id: int) -> list[ExpenseShare]:
        """Get the share rows of one expense."""
        return [
            ExpenseShare(
                expense_id=row["expense_id"],
                user_id=row["user_id"],
                share=from_cents(row["share_cents"]),
            )
            for row in self._fetchall(
                """
                SELECT expense_id, user_id, share_cents
                FROM participants
                WHERE expense_id = ?
                ORDER BY user_id
                """,
                (expense_id,),
            )
        ]

    # ========================================================================
    # Balance operations
    # ========================================================================

    def get_balance(self, from_user: int, to_user: int) -> Decimal | None:
        """Get the amount from_user owes to_user, or None if no row exists."""
        row = self._fetchone(
            "SELECT amount_cents FROM balances WHERE from_user = ? AND to_user = ?",
            (from_user, to_user),
        )
        return from_cents(row["amount_cents"]) if row else None

    def insert_balance(self, from_user: int, to_user: int, amount: Decimal):
        """Insert a new balance row."""
        with self.transaction():
            self._execute(
                """
                INSERT INTO balances (from_user, to_user, amount_cents)
                VALUES (?, ?, ?)
                """,
                (from_user, to_user, to_cents(amount)),
            )

    def update_balance(self, from_user: int, to_user: int, amount: Decimal):
        """Overwrite the amount of an existing balance row."""
        with self.transaction():
            self._execute(
                """
                UPDATE balances SET amount_cents = ?
                WHERE from_user = ? AND to_user = ?
                """,
                (to_cents(amount), from_user, to_user),
            )

    def delete_balance(self, from_user: int, to_user: int):
        """Delete a balance row."""
        with self.transaction():
            self._execute(
                "DELETE FROM balances WHERE from_user = ? AND to_user = ?",
                (from_user, to_user),
            )

    def get_all_balances(self) -> list[Balance]:
        """Get every stored balance row."""
        return [
            Balance(
                from_user=row["from_user"],
                to_user=row["to_user"],
                amount=from_cents(row["amount_cents"]),
            )
            for row in self._fetchall(
                "SELECT from_user, to_user, amount_cents FROM balances "
                "ORDER BY from_user, to_user"
            )
        ]

    def get_balance_lines(self) -> list[BalanceLine]:
        """Get every balance with debtor and creditor names resolved."""
        return [
            BalanceLine(
                debtor_name=row["debtor_name"],
                creditor_name=row["creditor_name"],
                amount=from_cents(row["amount_cents"]),
            )
            for row in self._fetchall(
                """
                SELECT u1.name AS debtor_name, u2.name AS creditor_name,
                       b.amount_cents
                FROM balances b
                JOIN users u1 ON b.from_user = u1.user_id
                JOIN users u2 ON b.to_user = u2.user_id
                """
            )
        ]
