"""Balance engine: share computation and pairwise debt updates."""

import logging
from collections.abc import Sequence
from decimal import ROUND_HALF_UP, Decimal

from .db import Database
from .exceptions import NoSuchBalanceError, ValidationError
from .models import CENT, PaymentResult

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


def split_expense(total: Decimal, participant_ids: Sequence[int]) -> Decimal:
    """
    Compute the equal share of an expense.

    The share is total / participant count, rounded half-up to the cent. The
    same value is used for every participant; any residual between
    share * count and total is left as is (see split_residual).

    Args:
        total: Expense total (must be positive)
        participant_ids: Participants sharing the expense (must be non-empty)

    Returns:
        The per-participant share

    Raises:
        ValidationError: If there are no participants, the total is not
                         positive, or the share rounds down to zero
    """
    if not participant_ids:
        raise ValidationError("An expense needs at least one participant")
    if total <= 0:
        raise ValidationError(f"Expense total must be positive, got {total}")

    share = (total / len(participant_ids)).quantize(CENT, rounding=ROUND_HALF_UP)
    if share <= 0:
        raise ValidationError(
            f"Total {total} is too small to split between "
            f"{len(participant_ids)} participants"
        )
    return share


def split_residual(total: Decimal, share: Decimal, count: int) -> Decimal:
    """Return total - share * count: the drift an equal split leaves behind."""
    return total - share * count


def compute_settlement(current: Decimal, amount: Decimal) -> Decimal | None:
    """
    Apply a payment to an outstanding balance.

    Returns:
        The remaining balance, or None when the payment settles it
        (over-payment is discarded)
    """
    remaining = current - amount
    if remaining <= 0:
        return None
    return remaining


class BalanceEngine:
    """Read-modify-write of pairwise balances against the ledger store.

    Nothing is cached: every operation re-reads the pair it touches inside a
    store transaction, which holds the ledger lock until the write is done.
    """

    def __init__(self, database: Database, net_reverse: bool = False):
        """
        Initialize the engine.

        Args:
            database: The ledger store
            net_reverse: When True, a new debt is first offset against any
                         balance the creditor owes the debtor, so the pair
                         holds at most one directed row
        """
        self.db = database
        self.net_reverse = net_reverse

    def accrue_debt(self, debtor: int, creditor: int, amount: Decimal) -> Decimal:
        """
        Record that debtor owes creditor an additional amount.

        Args:
            debtor: User who owes
            creditor: User who is owed
            amount: Amount to add (must be positive)

        Returns:
            The debtor's resulting position towards the creditor. In
            directional mode this is the stored (debtor, creditor) balance.
            In netting mode it is negative when the creditor still owes the
            debtor after the offset.

        Raises:
            ValidationError: If debtor == creditor or amount is not positive
        """
        if debtor == creditor:
            raise ValidationError(f"User {debtor} cannot owe themselves")
        if amount <= 0:
            raise ValidationError(f"Debt amount must be positive, got {amount}")

        reverse = None
        with self.db.transaction():
            if self.net_reverse:
                offset = self._offset_reverse(debtor, creditor, amount)
                if offset is not None:
                    return offset
                # The inverse balance was smaller than the new debt
                reverse = self.db.get_balance(creditor, debtor)
                if reverse is not None:
                    amount -= reverse

            existing = self.db.get_balance(debtor, creditor)
            if existing is None:
                self.db.insert_balance(debtor, creditor, amount)
                new_amount = amount
            else:
                new_amount = existing + amount
                self.db.update_balance(debtor, creditor, new_amount)

            if reverse is not None:
                self.db.delete_balance(creditor, debtor)

        logger.debug(f"Accrued {amount}: user {debtor} -> user {creditor} = {new_amount}")
        return new_amount

    def _offset_reverse(
        self, debtor: int, creditor: int, amount: Decimal
    ) -> Decimal | None:
        """
        Offset a new debt against what the creditor owes the debtor.

        Returns the debtor's signed position when the inverse balance fully
        absorbs the new debt, or None when an excess remains to be accrued.
        """
        reverse = self.db.get_balance(creditor, debtor)
        if reverse is None or reverse < amount:
            return None

        remaining = reverse - amount
        if remaining == 0:
            self.db.delete_balance(creditor, debtor)
        else:
            self.db.update_balance(creditor, debtor, remaining)

        logger.debug(
            f"Netted {amount} against user {creditor} -> user {debtor}, "
            f"{remaining} left"
        )
        return ZERO - remaining

    def settle_debt(self, debtor: int, creditor: int, amount: Decimal) -> PaymentResult:
        """
        Apply a payment from debtor to creditor.

        Args:
            debtor: User who pays
            creditor: User who receives the payment
            amount: Amount paid (must be positive)

        Returns:
            The payment result (settled or reduced)

        Raises:
            ValidationError: If amount is not positive
            NoSuchBalanceError: If debtor owes creditor nothing
        """
        if amount <= 0:
            raise ValidationError(f"Payment amount must be positive, got {amount}")

        with self.db.transaction():
            current = self.db.get_balance(debtor, creditor)
            if current is None:
                raise NoSuchBalanceError(debtor, creditor)

            remaining = compute_settlement(current, amount)
            if remaining is None:
                self.db.delete_balance(debtor, creditor)
            else:
                self.db.update_balance(debtor, creditor, remaining)

        if remaining is None:
            if amount > current:
                logger.info(
                    f"Payment of {amount} exceeds balance {current} "
                    f"(user {debtor} -> user {creditor}); excess discarded"
                )
            return PaymentResult(
                from_user=debtor,
                to_user=creditor,
                paid=amount,
                remaining=ZERO,
                outcome="settled",
            )

        return PaymentResult(
            from_user=debtor,
            to_user=creditor,
            paid=amount,
            remaining=remaining,
            outcome="reduced",
        )
