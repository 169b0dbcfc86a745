"""
Audit Logger

DESIGN DECISION: Every significant action in the system is logged.
This provides:
1. Complete traceability of balance changes
2. Debugging capability for load/save problems
3. User can see history of their interactions

The audit logger:
- Is synchronous, like the rest of the ledger
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs to trace events from one session
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from src.models.audit import AuditEvent, AuditEventBuilder
from src.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: int = logging.INFO) -> None:
    """
    Route structlog's JSON lines through stdlib logging at `level`.

    Safe to call more than once; only the level changes after the first call.
    """
    logging.basicConfig(format="%(message)s", level=level)
    logging.getLogger().setLevel(level)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage (for the in-app activity view), if given
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
        correlation_id: Optional[UUID] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for the audit trail.
                    If None, only logs locally.
            correlation_id: Attached to every event that doesn't carry
                    its own. Defaults to a fresh id per logger.
        """
        self._storage = storage
        self._correlation_id = correlation_id or create_correlation_id()
        self._logger = structlog.get_logger("ledger.audit")

    @property
    def correlation_id(self) -> UUID:
        return self._correlation_id

    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        if event.correlation_id is None:
            event.correlation_id = self._correlation_id

        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage is not None:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_account_added(self, name: str, index: int, balance: str) -> None:
        self.log(AuditEventBuilder.account_added(name=name, index=index, balance=balance))

    def log_account_switched(self, name: str, index: int) -> None:
        self.log(AuditEventBuilder.account_switched(name=name, index=index))

    def log_transaction_recorded(
        self,
        name: str,
        kind: str,
        amount: str,
        balance: str,
    ) -> None:
        """Log a successful income or expenditure."""
        self.log(AuditEventBuilder.transaction_recorded(
            name=name,
            kind=kind,
            amount=amount,
            balance=balance,
        ))

    def log_transaction_rejected(
        self,
        name: str,
        kind: str,
        amount: str,
        reason: str,
    ) -> None:
        self.log(AuditEventBuilder.transaction_rejected(
            name=name,
            kind=kind,
            amount=amount,
            reason=reason,
        ))

    def log_investment_made(
        self,
        name: str,
        kind: str,
        principal: str,
        term_years: int,
        maturity: float,
    ) -> None:
        """Log a booked investment with its projected maturity."""
        self.log(AuditEventBuilder.investment_made(
            name=name,
            kind=kind,
            principal=principal,
            term_years=term_years,
            maturity=maturity,
        ))

    def log_investment_rejected(
        self,
        name: str,
        kind: str,
        principal: str,
        reason: str,
    ) -> None:
        self.log(AuditEventBuilder.investment_rejected(
            name=name,
            kind=kind,
            principal=principal,
            reason=reason,
        ))

    def log_ledger_loaded(self, source: str, account_count: int, issue_count: int) -> None:
        self.log(AuditEventBuilder.ledger_loaded(
            source=source,
            account_count=account_count,
            issue_count=issue_count,
        ))

    def log_malformed_record(self, line_number: int, line: str, reason: str) -> None:
        """Log one persisted line that was skipped during load."""
        self.log(AuditEventBuilder.malformed_record(
            line_number=line_number,
            line=line,
            reason=reason,
        ))

    def log_ledger_saved(self, destination: str, account_count: int) -> None:
        self.log(AuditEventBuilder.ledger_saved(
            destination=destination,
            account_count=account_count,
        ))

    def log_save_failed(self, destination: str, error_message: str) -> None:
        self.log(AuditEventBuilder.save_failed(
            destination=destination,
            error_message=error_message,
        ))

    def log_command_rejected(self, command: str, error_kind: str, error_message: str) -> None:
        self.log(AuditEventBuilder.command_rejected(
            command=command,
            error_kind=error_kind,
            error_message=error_message,
        ))

    def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
    ) -> None:
        """Log an error."""
        self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new session and pass it to the AuditLogger.
    """
    return uuid4()
