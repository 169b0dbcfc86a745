"""
Data Models Package

This package contains all Pydantic models used by the personal ledger.
All ledger state and every command flowing through the system conform
to these schemas.
"""

from src.models.ledger import (
    DEFAULT_OPENING_BALANCE,
    MINIMUM_RESERVE,
    Account,
    AccountSnapshot,
    FixedDeposit,
    Investment,
    InvestmentKind,
    InvestmentSummary,
    Ledger,
    SystematicPlan,
    Transaction,
    TransactionKind,
    TransactionSummary,
    build_investment,
    maturity_value,
)
from src.models.commands import (
    AddAccount,
    Command,
    CommandResult,
    Exit,
    MakeInvestment,
    RecordExpenditure,
    RecordIncome,
    SwitchAccount,
    ViewActiveAccountDetails,
    parse_command,
    parse_investment_kind,
)
from src.models.errors import (
    IndexOutOfRangeError,
    InsufficientBalanceError,
    InvalidCommandError,
    LedgerError,
    LedgerErrorKind,
    MalformedRecordError,
    NoActiveAccountError,
)
from src.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Ledger models
    "DEFAULT_OPENING_BALANCE",
    "MINIMUM_RESERVE",
    "Account",
    "AccountSnapshot",
    "FixedDeposit",
    "Investment",
    "InvestmentKind",
    "InvestmentSummary",
    "Ledger",
    "SystematicPlan",
    "Transaction",
    "TransactionKind",
    "TransactionSummary",
    "build_investment",
    "maturity_value",
    # Commands
    "AddAccount",
    "Command",
    "CommandResult",
    "Exit",
    "MakeInvestment",
    "RecordExpenditure",
    "RecordIncome",
    "SwitchAccount",
    "ViewActiveAccountDetails",
    "parse_command",
    "parse_investment_kind",
    # Errors
    "IndexOutOfRangeError",
    "InsufficientBalanceError",
    "InvalidCommandError",
    "LedgerError",
    "LedgerErrorKind",
    "MalformedRecordError",
    "NoActiveAccountError",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
