"""
Ledger Error Types

DESIGN DECISION: Every failure the command layer can report has its own
exception class AND a stable `LedgerErrorKind` value. The exception is what
the core raises; the kind is what the command layer shows to the user.

All of these are recoverable. The session turns them into a failed
CommandResult and keeps going.
"""

from enum import Enum
from typing import Optional


class LedgerErrorKind(str, Enum):
    """Stable identifiers for user-facing error reporting."""
    INSUFFICIENT_BALANCE = "insufficient_balance"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    NO_ACTIVE_ACCOUNT = "no_active_account"
    MALFORMED_RECORD = "malformed_record"
    INVALID_COMMAND = "invalid_command"


class LedgerError(Exception):
    """Base exception for all ledger domain errors."""

    kind: LedgerErrorKind


class InsufficientBalanceError(LedgerError):
    """An expenditure or investment would drop the balance below the reserve."""

    kind = LedgerErrorKind.INSUFFICIENT_BALANCE

    def __init__(self, balance, amount, minimum_reserve):
        self.balance = balance
        self.amount = amount
        self.minimum_reserve = minimum_reserve
        super().__init__(
            f"Insufficient balance: {balance} - {amount} would leave less "
            f"than the {minimum_reserve} minimum reserve"
        )


class IndexOutOfRangeError(LedgerError):
    """Account switch index is not a valid position in the ledger."""

    kind = LedgerErrorKind.INDEX_OUT_OF_RANGE

    def __init__(self, index: int, account_count: int):
        self.index = index
        self.account_count = account_count
        super().__init__(
            f"Invalid account index {index}: "
            f"expected 0 to {account_count - 1}" if account_count
            else f"Invalid account index {index}: no accounts exist"
        )


class NoActiveAccountError(LedgerError):
    """An account-scoped command was issued with no active account."""

    kind = LedgerErrorKind.NO_ACTIVE_ACCOUNT

    def __init__(self, message: str = "No active account"):
        super().__init__(message)


class MalformedRecordError(LedgerError):
    """A persisted line could not be parsed into its expected fields."""

    kind = LedgerErrorKind.MALFORMED_RECORD

    def __init__(self, reason: str, line: Optional[str] = None):
        self.reason = reason
        self.line = line
        super().__init__(reason)


class InvalidCommandError(LedgerError):
    """Unrecognized command, investment type code, or invalid command field."""

    kind = LedgerErrorKind.INVALID_COMMAND
