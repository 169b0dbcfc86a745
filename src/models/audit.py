"""
Audit Models for the Personal Ledger

Every significant action in the system is logged for audit purposes.
This provides:
1. Traceability of every balance change
2. Debugging information when a load or save goes wrong
3. A visible record of rejected commands

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """
    Types of events we audit.

    Every ledger command has a success event, and the two balance-changing
    commands also have a rejection event.
    """
    # Accounts
    ACCOUNT_ADDED = "account_added"
    ACCOUNT_SWITCHED = "account_switched"

    # Cash movements
    TRANSACTION_RECORDED = "transaction_recorded"
    TRANSACTION_REJECTED = "transaction_rejected"
    INVESTMENT_MADE = "investment_made"
    INVESTMENT_REJECTED = "investment_rejected"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    MALFORMED_RECORD = "malformed_record"
    LEDGER_SAVED = "ledger_saved"
    SAVE_FAILED = "save_failed"

    # Command layer
    COMMAND_REJECTED = "command_rejected"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - which account is this about?
    account_name: Optional[str] = Field(
        default=None,
        description="Name of the account the event relates to"
    )
    account_index: Optional[int] = Field(
        default=None,
        description="Position of that account in the ledger"
    )

    # Correlation - one id per session
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all events in one session)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by a user command?"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_name": self.account_name,
            "account_index": self.account_index,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_row(self) -> list[str]:
        """
        Flatten to a list of strings for tabular display.

        Columns:
        [timestamp, event_type, severity, account_name, description,
         details_json, error_message]
        """
        return [
            self.timestamp.isoformat(),
            self.event_type.value,
            self.severity.value,
            self.account_name or "",
            self.description,
            json.dumps(self.details, default=str) if self.details else "",
            self.error_message or "",
        ]


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.account_added("Savings", 0, correlation_id)
        event = AuditEventBuilder.ledger_saved(path, 3, correlation_id)
    """

    @staticmethod
    def account_added(
        name: str,
        index: int,
        balance: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_ADDED,
            account_name=name,
            account_index=index,
            correlation_id=correlation_id,
            description=f"Account added: {name}",
            details={"opening_balance": balance},
            is_user_action=True,
        )

    @staticmethod
    def account_switched(
        name: str,
        index: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_SWITCHED,
            account_name=name,
            account_index=index,
            correlation_id=correlation_id,
            description=f"Switched to account: {name}",
            is_user_action=True,
        )

    @staticmethod
    def transaction_recorded(
        name: str,
        kind: str,
        amount: str,
        balance: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_RECORDED,
            account_name=name,
            correlation_id=correlation_id,
            description=f"{kind} of {amount} recorded",
            details={
                "kind": kind,
                "amount": amount,
                "balance": balance,
            },
            is_user_action=True,
        )

    @staticmethod
    def transaction_rejected(
        name: str,
        kind: str,
        amount: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            account_name=name,
            correlation_id=correlation_id,
            description=f"{kind} of {amount} rejected",
            details={
                "kind": kind,
                "amount": amount,
            },
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def investment_made(
        name: str,
        kind: str,
        principal: str,
        term_years: int,
        maturity: float,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_MADE,
            account_name=name,
            correlation_id=correlation_id,
            description=f"{kind} of {principal} for {term_years} years",
            details={
                "kind": kind,
                "principal": principal,
                "term_years": term_years,
                "maturity_value": round(maturity, 2),
            },
            is_user_action=True,
        )

    @staticmethod
    def investment_rejected(
        name: str,
        kind: str,
        principal: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INVESTMENT_REJECTED,
            severity=AuditSeverity.WARNING,
            account_name=name,
            correlation_id=correlation_id,
            description=f"{kind} of {principal} rejected",
            details={
                "kind": kind,
                "principal": principal,
            },
            error_message=reason,
            is_user_action=True,
        )

    @staticmethod
    def ledger_loaded(
        source: str,
        account_count: int,
        issue_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_LOADED,
            severity=AuditSeverity.WARNING if issue_count else AuditSeverity.INFO,
            correlation_id=correlation_id,
            description=f"Ledger loaded with {account_count} accounts",
            details={
                "source": source,
                "account_count": account_count,
                "malformed_records": issue_count,
            },
        )

    @staticmethod
    def malformed_record(
        line_number: int,
        line: str,
        reason: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.MALFORMED_RECORD,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Skipped malformed record on line {line_number}",
            details={
                "line_number": line_number,
                "line": line,
            },
            error_code="malformed_record",
            error_message=reason,
        )

    @staticmethod
    def ledger_saved(
        destination: str,
        account_count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LEDGER_SAVED,
            correlation_id=correlation_id,
            description=f"Ledger saved with {account_count} accounts",
            details={
                "destination": destination,
                "account_count": account_count,
            },
        )

    @staticmethod
    def save_failed(
        destination: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description="Ledger could not be saved",
            details={"destination": destination},
            error_message=error_message,
        )

    @staticmethod
    def command_rejected(
        command: str,
        error_kind: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.COMMAND_REJECTED,
            severity=AuditSeverity.WARNING,
            correlation_id=correlation_id,
            description=f"Command rejected: {command}",
            details={"command": command},
            error_code=error_kind,
            error_message=error_message,
            is_user_action=True,
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
