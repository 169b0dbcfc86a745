"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Keep the text file format out of the business logic
2. Use in-memory storage for testing
3. Swap the flat file for something else later

The interface is intentionally simple: the whole ledger is read once at
start and written once at exit.
"""

from abc import ABC, abstractmethod

from pydantic import BaseModel, Field

from src.models.audit import AuditEvent
from src.models.ledger import Ledger


class RecordIssue(BaseModel):
    """A persisted line that was skipped during load."""

    line_number: int = Field(
        ...,
        ge=1,
        description="1-based line number in the source"
    )
    line: str = Field(
        ...,
        description="The raw line as read"
    )
    reason: str = Field(
        ...,
        description="Why the line could not be used"
    )


class LoadResult(BaseModel):
    """
    Result of loading a ledger.

    A load never fails because of a bad line. Bad lines are skipped and
    reported here so the caller can show or log them.
    """

    ledger: Ledger = Field(default_factory=Ledger)
    issues: list[RecordIssue] = Field(default_factory=list)

    @property
    def has_issues(self) -> bool:
        return bool(self.issues)


class LedgerStorageInterface(ABC):
    """
    Abstract interface for ledger persistence.

    Any storage implementation must implement these methods.
    """

    @property
    @abstractmethod
    def location(self) -> str:
        """Human-readable description of where the ledger lives."""
        pass

    @abstractmethod
    def load(self) -> LoadResult:
        """
        Read the whole ledger.

        Returns:
            The reconstructed ledger plus any skipped records.
            A storage with nothing in it yields an empty ledger.

        Raises:
            StorageError: If the storage exists but cannot be read
        """
        pass

    @abstractmethod
    def save(self, ledger: Ledger) -> None:
        """
        Replace the stored ledger with `ledger`.

        Raises:
            StorageError: If the write fails
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events.

        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageReadError(StorageError):
    """The ledger source exists but could not be read."""
    pass


class StorageWriteError(StorageError):
    """The ledger could not be written."""
    pass
