"""Tests for the Typer CLI."""

from unittest.mock import patch

import pytest
from typer.testing import CliRunner

from tripsplit.cli import app

runner = CliRunner()


@pytest.fixture
def env(tmp_path):
    """Point the CLI at a temporary database."""
    return {"TRIPSPLIT_DATABASE_PATH": str(tmp_path / "cli.db")}


@pytest.fixture
def seeded(env):
    """Register Alice and Bob and a trip through the CLI."""
    for args in (
        ["add-user", "Alice", "--email", "alice@example.com"],
        ["add-user", "Bob"],
        ["add-trip", "Lisbon"],
    ):
        result = runner.invoke(app, args, env=env)
        assert result.exit_code == 0, result.output
    return env


class TestCommands:
    """End-to-end runs of the CLI commands."""

    def test_add_user_prints_id(self, env):
        result = runner.invoke(app, ["add-user", "Alice"], env=env)

        assert result.exit_code == 0
        assert "User added" in result.output
        assert "id: 1" in result.output

    def test_empty_user_name_fails(self, env):
        result = runner.invoke(app, ["add-user", "  "], env=env)

        assert result.exit_code == 1
        assert "Invalid input" in result.output

    def test_expense_then_balances(self, seeded):
        """Recording an expense shows up in the balances table."""
        result = runner.invoke(
            app,
            ["add-expense", "Dinner", "30", "--payer", "1", "--trip", "1",
             "--participants", "1,2"],
            env=seeded,
        )
        assert result.exit_code == 0, result.output
        assert "Expense recorded" in result.output

        result = runner.invoke(app, ["balances"], env=seeded)
        assert result.exit_code == 0
        assert "Bob" in result.output
        assert "15.00" in result.output

    def test_payment_settles_balance(self, seeded):
        runner.invoke(
            app,
            ["add-expense", "Dinner", "30", "-p", "1", "-t", "1", "-s", "1,2"],
            env=seeded,
        )

        result = runner.invoke(app, ["pay", "2", "1", "15"], env=seeded)
        assert result.exit_code == 0
        assert "settled" in result.output

        result = runner.invoke(app, ["balances"], env=seeded)
        assert "All settled up" in result.output

    def test_partial_payment_shows_remaining(self, seeded):
        runner.invoke(
            app,
            ["add-expense", "Dinner", "30", "-p", "1", "-t", "1", "-s", "1,2"],
            env=seeded,
        )

        result = runner.invoke(app, ["pay", "2", "1", "5"], env=seeded)

        assert result.exit_code == 0
        assert "remaining: 10.00" in result.output

    def test_payment_without_balance_fails(self, seeded):
        result = runner.invoke(app, ["pay", "2", "1", "5"], env=seeded)

        assert result.exit_code == 1
        assert "No balance" in result.output

    def test_empty_participants_fail(self, seeded):
        result = runner.invoke(
            app,
            ["add-expense", "Dinner", "30", "-p", "1", "-t", "1", "-s", ""],
            env=seeded,
        )

        assert result.exit_code == 1
        assert "participant" in result.output

    def test_unknown_trip_is_store_error(self, seeded):
        result = runner.invoke(
            app,
            ["add-expense", "Dinner", "30", "-p", "1", "-t", "9", "-s", "1,2"],
            env=seeded,
        )

        assert result.exit_code == 1
        assert "Error" in result.output

    def test_listings(self, seeded):
        runner.invoke(
            app,
            ["add-expense", "Dinner", "30", "-p", "1", "-t", "1", "-s", "1,2"],
            env=seeded,
        )

        users = runner.invoke(app, ["users"], env=seeded)
        trips = runner.invoke(app, ["trips"], env=seeded)
        expenses = runner.invoke(app, ["expenses", "--trip", "1"], env=seeded)

        assert "alice@example.com" in users.output
        assert "Lisbon" in trips.output
        assert "Dinner" in expenses.output

    def test_expenses_show_payer_name(self, seeded):
        runner.invoke(
            app,
            ["add-expense", "Train", "12", "-p", "2", "-t", "1", "-s", "1,2"],
            env=seeded,
        )

        result = runner.invoke(app, ["expenses"], env=seeded)

        assert result.exit_code == 0
        assert "Bob" in result.output

    def test_oversized_id_is_invalid_input(self, seeded):
        """Ids past the 64-bit range are rejected without a traceback."""
        result = runner.invoke(app, ["pay", "99999999999999999999", "1", "5"], env=seeded)

        assert result.exit_code == 1
        assert "Invalid input" in result.output
        assert not isinstance(result.exception, OverflowError)

    def test_cancelled_participant_picker(self, seeded):
        """Cancelling the picker records nothing and is not an error."""
        with patch("tripsplit.cli.select_participants_interactive", return_value=[]):
            result = runner.invoke(
                app, ["add-expense", "Dinner", "30", "-p", "1", "-t", "1"], env=seeded
            )

        assert result.exit_code == 0
        assert "No participants selected" in result.output

        expenses = runner.invoke(app, ["expenses"], env=seeded)
        assert "Dinner" not in expenses.output
