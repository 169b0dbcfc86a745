"""
Storage Services Package

Provides abstract interfaces and concrete implementations for ledger and
audit storage. The ledger is kept in a plain text file; the audit trail is
kept in memory.
"""

from src.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    LoadResult,
    RecordIssue,
    StorageError,
    StorageReadError,
    StorageWriteError,
)
from src.services.storage.codec import dump_ledger, load_ledger
from src.services.storage.memory import InMemoryAuditStorage
from src.services.storage.text_file import TextFileLedgerStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    "LoadResult",
    "RecordIssue",
    # Exceptions
    "StorageError",
    "StorageReadError",
    "StorageWriteError",
    # Codec
    "dump_ledger",
    "load_ledger",
    # Implementations
    "InMemoryAuditStorage",
    "TextFileLedgerStorage",
]
