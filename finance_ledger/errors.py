"""Exception types raised by the ledger and goal tracker."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for every error raised by :mod:`finance_ledger`."""


class ValidationError(LedgerError, ValueError):
    """Input rejected before any state was touched (bad amount, date, kind...)."""


class NotFoundError(LedgerError, KeyError):
    """An id does not refer to a known item, occurrence or goal."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0]) if self.args else ''


class InsufficientFundsError(LedgerError):
    """A savings withdrawal would leave the savings balance negative."""

    def __init__(self, requested, available):
        self.requested = requested
        self.available = available
        super().__init__(
            f"Insufficient savings: requested {requested}, available {available}"
        )


class PersistenceError(LedgerError):
    """A stored payload could not be decoded."""
