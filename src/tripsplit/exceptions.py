"""Custom exceptions for TripSplit."""


class TripSplitError(Exception):
    """Base exception for all TripSplit errors."""

    pass


class ConfigurationError(TripSplitError):
    """Raised when configuration is invalid or missing."""

    pass


class ValidationError(TripSplitError):
    """Raised when input is malformed or missing, before any store write."""

    pass


class NoSuchBalanceError(TripSplitError):
    """Raised when a payment targets a pair with no outstanding balance."""

    def __init__(self, debtor: int, creditor: int, message: str | None = None):
        self.debtor = debtor
        self.creditor = creditor
        super().__init__(
            message or f"No balance exists from user {debtor} to user {creditor}"
        )


class StoreError(TripSplitError):
    """Raised when the ledger store is unreachable or rejects a write."""

    pass
