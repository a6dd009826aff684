"""Tests for the SQLite ledger store."""

from decimal import Decimal

import pytest

from tripsplit.db import Database
from tripsplit.exceptions import StoreError


@pytest.fixture
def db(tmp_path):
    """Create a temporary database with two users and a trip."""
    database = Database(tmp_path / "store.db")
    database.insert_user("Alice", "alice@example.com")
    database.insert_user("Bob", "")
    database.insert_trip("Lisbon")
    yield database
    database.close()


class TestSchema:
    """Tests for schema constraints."""

    def test_reopening_keeps_rows(self, tmp_path):
        """Data survives closing and reopening the store."""
        path = tmp_path / "persist.db"
        with Database(path) as first:
            alice = first.insert_user("Alice", "a@example.com")
            bob = first.insert_user("Bob", "")
            first.insert_trip("Lisbon")
            first.insert_balance(bob, alice, Decimal("4.20"))

        with Database(path) as second:
            assert [u.name for u in second.get_all_users()] == ["Alice", "Bob"]
            assert second.get_balance(bob, alice) == Decimal("4.20")
            assert len(second.get_all_trips()) == 1

    def test_balance_pair_is_unique(self, db):
        """An ordered pair can hold only one row."""
        db.insert_balance(2, 1, Decimal("5.00"))

        with pytest.raises(StoreError):
            db.insert_balance(2, 1, Decimal("1.00"))
        assert db.get_balance(2, 1) == Decimal("5.00")

    def test_self_balance_rejected(self, db):
        """A user cannot owe themselves."""
        with pytest.raises(StoreError):
            db.insert_balance(1, 1, Decimal("5.00"))

    def test_zero_balance_rejected(self, db):
        """Balances must be positive; settled pairs are deleted instead."""
        with pytest.raises(StoreError):
            db.insert_balance(2, 1, Decimal("0"))

    def test_unknown_user_rejected(self, db):
        """Foreign keys are enforced."""
        with pytest.raises(StoreError):
            db.insert_balance(2, 99, Decimal("5.00"))

    def test_integer_overflow_is_store_error(self, db):
        """Values past the 64-bit INTEGER range surface as StoreError."""
        with pytest.raises(StoreError):
            db.get_balance(10**20, 1)
        with pytest.raises(StoreError):
            db.insert_balance(2, 1, Decimal("1e18"))
        assert db.get_all_balances() == []

    def test_amounts_round_trip_in_cents(self, db):
        """Amounts are stored as integer cents and read back as Decimals."""
        db.insert_balance(2, 1, Decimal("10.10"))
        db.update_balance(2, 1, Decimal("0.30"))

        assert db.get_balance(2, 1) == Decimal("0.30")
        assert [b.amount for b in db.get_all_balances()] == [Decimal("0.30")]


class TestTransaction:
    """Tests for Database.transaction."""

    def test_commits_on_success(self, db):
        with db.transaction():
            db.insert_balance(2, 1, Decimal("5.00"))
            db.update_balance(2, 1, Decimal("7.00"))

        assert db.get_balance(2, 1) == Decimal("7.00")

    def test_rolls_back_on_error(self, db):
        """Every write in the scope is undone when it raises."""
        with pytest.raises(RuntimeError):
            with db.transaction():
                db.insert_balance(2, 1, Decimal("5.00"))
                db.insert_user("Carol", "")
                raise RuntimeError("boom")

        assert db.get_balance(2, 1) is None
        assert [u.name for u in db.get_all_users()] == ["Alice", "Bob"]

    def test_nested_scope_joins_outer(self, db):
        """An inner scope failing rolls back the outer writes too."""
        with pytest.raises(StoreError):
            with db.transaction():
                db.insert_balance(2, 1, Decimal("5.00"))
                with db.transaction():
                    db.insert_balance(2, 1, Decimal("1.00"))

        assert db.get_all_balances() == []

    def test_usable_after_rollback(self, db):
        """A failed transaction does not poison the connection."""
        with pytest.raises(StoreError):
            db.insert_balance(1, 1, Decimal("1"))

        db.insert_balance(2, 1, Decimal("2.00"))
        assert db.get_balance(2, 1) == Decimal("2.00")


class TestQueries:
    """Tests for read helpers."""

    def test_balance_lines_join_names(self, db):
        db.insert_balance(2, 1, Decimal("12.00"))

        lines = db.get_balance_lines()

        assert len(lines) == 1
        assert (lines[0].debtor_name, lines[0].creditor_name) == ("Bob", "Alice")
        assert lines[0].amount == Decimal("12.00")

    def test_user_lines(self, db):
        assert {(u.name, u.email) for u in db.get_user_lines()} == {
            ("Alice", "alice@example.com"),
            ("Bob", ""),
        }

    def test_get_missing_user(self, db):
        assert db.get_user(42) is None

    def test_expenses_filtered_by_trip(self, db):
        other = db.insert_trip("Porto")
        first = db.insert_expense("Dinner", Decimal("30"), 1, 1)
        db.insert_expense("Train", Decimal("12"), 2, other)
        db.insert_share(first, 1, Decimal("15"))
        db.insert_share(first, 2, Decimal("15"))

        assert [e.description for e in db.get_expenses(1)] == ["Dinner"]
        assert len(db.get_expenses()) == 2
        assert [s.share for s in db.get_expense_shares(first)] == [
            Decimal("15.00"),
            Decimal("15.00"),
        ]
