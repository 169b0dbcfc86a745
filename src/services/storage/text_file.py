"""
Text File Storage Implementation

DESIGN DECISION: The ledger lives in a single plain text file because:
1. The user can read and fix it in any editor
2. No database setup required
3. The format stays compatible with existing finance_data.txt files

TRADEOFFS:
- The whole file is rewritten on every save (fine for personal use)
- No partial-write recovery: a crash mid-save can leave a truncated file
- Last write wins

The implementation follows the abstract interface, so it can be swapped
without changing business logic.
"""

from pathlib import Path
from typing import Union

from src.models.ledger import Ledger
from src.services.storage.codec import dump_ledger, load_ledger
from src.services.storage.interface import (
    LedgerStorageInterface,
    LoadResult,
    StorageReadError,
    StorageWriteError,
)


class TextFileLedgerStorage(LedgerStorageInterface):
    """
    Stores the ledger in one line-oriented text file.

    A missing file is an empty ledger, not an error.
    """

    def __init__(self, path: Union[str, Path], encoding: str = "utf-8"):
        self._path = Path(path)
        self._encoding = encoding

    @property
    def path(self) -> Path:
        return self._path

    @property
    def location(self) -> str:
        return str(self._path)

    def load(self) -> LoadResult:
        """Read and parse the file. Bad lines come back as issues."""
        if not self._path.exists():
            return LoadResult()

        try:
            text = self._path.read_text(encoding=self._encoding)
        except (OSError, UnicodeDecodeError) as e:
            raise StorageReadError(f"Failed to read ledger file {self._path}: {e}") from e

        return load_ledger(text)

    def save(self, ledger: Ledger) -> None:
        """Overwrite the file with the serialized ledger. Attempted once."""
        text = dump_ledger(ledger)
        try:
            # newline="" keeps "\n" on every platform
            with open(self._path, "w", encoding=self._encoding, newline="") as f:
                f.write(text)
        except OSError as e:
            raise StorageWriteError(f"Failed to write ledger file {self._path}: {e}") from e
