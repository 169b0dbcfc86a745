"""Services package."""

from src.services.storage import (
    AuditStorageInterface,
    InMemoryAuditStorage,
    LedgerStorageInterface,
    LoadResult,
    RecordIssue,
    StorageError,
    StorageReadError,
    StorageWriteError,
    TextFileLedgerStorage,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "InMemoryAuditStorage",
    "LedgerStorageInterface",
    "LoadResult",
    "RecordIssue",
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    "TextFileLedgerStorage",
]
