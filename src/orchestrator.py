"""
Main Orchestrator for the Personal Ledger

This module ties together the ledger, its storage and the audit logger,
and defines the session lifecycle:
1. Start   (read the data file → Ledger)
2. Execute (command → mutate active account → CommandResult)
3. Exit    (Ledger → data file, exactly once)

DESIGN DECISION: The session OWNS the ledger. There is no module-level
ledger; the UI holds a session and passes commands to it. That keeps the
core testable without a running app.

Domain errors never escape `execute`. They become failed CommandResults so
the UI can report them and carry on. Storage errors DO escape: a file that
cannot be read at start or written at exit must surface, and nothing is
retried.
"""

from decimal import Decimal
from typing import Callable, Optional

from src.audit import AuditLogger, configure_logging
from src.config import LedgerSettings, get_settings
from src.models.commands import (
    AddAccount,
    CommandResult,
    Exit,
    MakeInvestment,
    RecordExpenditure,
    RecordIncome,
    SwitchAccount,
    ViewActiveAccountDetails,
    parse_command,
)
from src.models.errors import InvalidCommandError, LedgerError
from src.models.ledger import Ledger, TransactionKind, maturity_value
from src.services.storage import (
    InMemoryAuditStorage,
    LedgerStorageInterface,
    LoadResult,
    StorageError,
    TextFileLedgerStorage,
)


def _money(value: Decimal) -> str:
    return f"{value:.2f}"


class LedgerSession:
    """
    One run of the ledger, from load to final save.

    Usage:
        session = LedgerSession(TextFileLedgerStorage("finance_data.txt"))
        session.start()
        session.execute(AddAccount(name="Savings"))
        session.execute(RecordIncome(amount=Decimal("500"), description="Salary"))
        session.execute(Exit())
    """

    def __init__(
        self,
        storage: LedgerStorageInterface,
        audit_logger: Optional[AuditLogger] = None,
        ledger: Optional[Ledger] = None,
    ):
        self._storage = storage
        self._audit_logger = audit_logger
        self._ledger = ledger if ledger is not None else Ledger()
        self._closed = False

        self._handlers: dict[type, Callable] = {
            AddAccount: self._add_account,
            SwitchAccount: self._switch_account,
            RecordIncome: self._record_income,
            RecordExpenditure: self._record_expenditure,
            MakeInvestment: self._make_investment,
            ViewActiveAccountDetails: self._view_account,
            Exit: self._exit,
        }

    @property
    def ledger(self) -> Ledger:
        return self._ledger

    @property
    def audit_logger(self) -> Optional[AuditLogger]:
        return self._audit_logger

    @property
    def is_closed(self) -> bool:
        return self._closed

    # =========================================================================
    # LIFECYCLE
    # =========================================================================

    def start(self) -> LoadResult:
        """
        Load the ledger from storage, replacing the in-memory one.

        Malformed records are audited and skipped; the rest loads.

        Raises:
            StorageError: If the data exists but cannot be read
        """
        result = self._storage.load()
        self._ledger = result.ledger

        if self._audit_logger:
            for issue in result.issues:
                self._audit_logger.log_malformed_record(
                    line_number=issue.line_number,
                    line=issue.line,
                    reason=issue.reason,
                )
            self._audit_logger.log_ledger_loaded(
                source=self._storage.location,
                account_count=len(result.ledger.accounts),
                issue_count=len(result.issues),
            )

        return result

    def save(self) -> None:
        """
        Write the ledger to storage. Attempted exactly once per call.

        Raises:
            StorageError: If the write fails
        """
        try:
            self._storage.save(self._ledger)
        except StorageError as e:
            if self._audit_logger:
                self._audit_logger.log_save_failed(
                    destination=self._storage.location,
                    error_message=str(e),
                )
            raise

        if self._audit_logger:
            self._audit_logger.log_ledger_saved(
                destination=self._storage.location,
                account_count=len(self._ledger.accounts),
            )

    # =========================================================================
    # COMMANDS
    # =========================================================================

    def execute(self, command) -> CommandResult:
        """
        Run one command against the ledger.

        Returns a CommandResult for every domain outcome, success or not.

        Raises:
            StorageError: Only from Exit, when the final save fails
        """
        handler = self._handlers.get(type(command))
        if handler is None:
            return self._reject(
                type(command).__name__,
                InvalidCommandError(f"Unrecognized command: {type(command).__name__}"),
            )
        if self._closed:
            return self._reject(
                command.type,
                InvalidCommandError("Session has already exited"),
            )

        try:
            return handler(command)
        except LedgerError as e:
            return self._reject(command.type, e)

    def execute_raw(self, payload: dict) -> CommandResult:
        """Parse raw UI input into a command and run it."""
        try:
            command = parse_command(payload)
        except InvalidCommandError as e:
            command_name = payload.get("type", "unknown") if isinstance(payload, dict) else "unknown"
            return self._reject(str(command_name), e)
        return self.execute(command)

    def _reject(self, command_name: str, error: LedgerError) -> CommandResult:
        if self._audit_logger:
            self._audit_logger.log_command_rejected(
                command=command_name,
                error_kind=error.kind.value,
                error_message=str(error),
            )
        return CommandResult(
            success=False,
            message=str(error),
            error_kind=error.kind,
        )

    def _add_account(self, command: AddAccount) -> CommandResult:
        try:
            account = self._ledger.add_account(command.name)
        except ValueError as e:
            raise InvalidCommandError(f"Invalid account name: {e}") from e

        if self._audit_logger:
            self._audit_logger.log_account_added(
                name=account.name,
                index=self._ledger.active_index,
                balance=_money(account.balance),
            )

        return CommandResult(
            success=True,
            message=f"Account added and switched to: {account.name}",
            account_name=account.name,
            balance=account.balance,
        )

    def _switch_account(self, command: SwitchAccount) -> CommandResult:
        account = self._ledger.switch_active(command.index)

        if self._audit_logger:
            self._audit_logger.log_account_switched(name=account.name, index=command.index)

        return CommandResult(
            success=True,
            message=f"Switched to account: {account.name}",
            account_name=account.name,
            balance=account.balance,
        )

    def _record_income(self, command: RecordIncome) -> CommandResult:
        return self._record_transaction(TransactionKind.INCOME, command.amount, command.description)

    def _record_expenditure(self, command: RecordExpenditure) -> CommandResult:
        return self._record_transaction(
            TransactionKind.EXPENDITURE, command.amount, command.description
        )

    def _record_transaction(
        self,
        kind: TransactionKind,
        amount: Decimal,
        description: str,
    ) -> CommandResult:
        account = self._ledger.require_active_account()

        try:
            transaction = account.record_transaction(kind, amount, description)
        except LedgerError as e:
            if self._audit_logger:
                self._audit_logger.log_transaction_rejected(
                    name=account.name,
                    kind=kind.value,
                    amount=_money(amount),
                    reason=str(e),
                )
            raise
        except ValueError as e:
            raise InvalidCommandError(f"Invalid transaction: {e}") from e

        if self._audit_logger:
            self._audit_logger.log_transaction_recorded(
                name=account.name,
                kind=kind.value,
                amount=_money(transaction.amount),
                balance=_money(account.balance),
            )

        return CommandResult(
            success=True,
            message=f"{kind.value} of {_money(transaction.amount)} recorded",
            account_name=account.name,
            balance=account.balance,
            transaction=transaction,
        )

    def _make_investment(self, command: MakeInvestment) -> CommandResult:
        account = self._ledger.require_active_account()

        try:
            investment = account.make_investment(
                command.kind,
                command.amount,
                command.term_years,
                command.monthly_contribution,
            )
        except LedgerError as e:
            if self._audit_logger:
                self._audit_logger.log_investment_rejected(
                    name=account.name,
                    kind=command.kind.value,
                    principal=_money(command.amount),
                    reason=str(e),
                )
            raise
        except ValueError as e:
            raise InvalidCommandError(f"Invalid investment: {e}") from e

        maturity = maturity_value(investment)
        if self._audit_logger:
            self._audit_logger.log_investment_made(
                name=account.name,
                kind=investment.kind.value,
                principal=_money(investment.principal),
                term_years=investment.term_years,
                maturity=maturity,
            )

        return CommandResult(
            success=True,
            message=(
                f"{investment.kind.value} of {_money(investment.principal)} made, "
                f"maturity amount {maturity:.2f}"
            ),
            account_name=account.name,
            balance=account.balance,
            investment=investment,
        )

    def _view_account(self, command: ViewActiveAccountDetails) -> CommandResult:
        account = self._ledger.require_active_account()
        return CommandResult(
            success=True,
            message=f"Account Name: {account.name}",
            account_name=account.name,
            balance=account.balance,
            snapshot=account.snapshot(),
        )

    def _exit(self, command: Exit) -> CommandResult:
        """
        Final save. A storage failure propagates and is not retried; the
        session stays open so the user can decide what to do.
        """
        self.save()
        self._closed = True
        return CommandResult(
            success=True,
            message=f"Ledger saved to {self._storage.location}",
        )


def create_session(
    settings: Optional[LedgerSettings] = None,
    audit_storage: Optional[InMemoryAuditStorage] = None,
) -> LedgerSession:
    """
    Factory function to create a ready-to-use session.

    Builds file storage and audit logging from settings, then loads the
    ledger from disk.
    """
    settings = settings or get_settings()
    configure_logging(settings.log_level_number)

    storage = TextFileLedgerStorage(settings.data_file, encoding=settings.file_encoding)
    if audit_storage is None:
        audit_storage = InMemoryAuditStorage(settings.audit_history_limit)
    audit_logger = AuditLogger(audit_storage)

    session = LedgerSession(storage=storage, audit_logger=audit_logger)
    session.start()
    return session
