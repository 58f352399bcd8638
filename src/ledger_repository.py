"""
Ledger persistence

LedgerRepository hides how the ledger document is stored. The JSON
implementation loads and rewrites the whole document on every call; callers
(MentionLedger) serialise access so only one read-modify-write is in flight.

Copyright (c) 2025 Steve Angelovich
Licensed under the MIT License - see LICENSE file for details.
"""

import json
import logging
import os
from abc import ABC, abstractmethod

from errors import LedgerWriteError
from mention import LedgerDocument


logger = logging.getLogger(__name__)


class LedgerRepository(ABC):
    """Storage backend for the mention ledger document."""

    @property
    @abstractmethod
    def path(self) -> str:
        """Location of the stored document (used by the publisher)."""

    @abstractmethod
    def load(self) -> LedgerDocument:
        """
        Load the whole document.

        Returns:
            LedgerDocument. A missing or unreadable store yields an empty document.
        """

    @abstractmethod
    def save(self, document: LedgerDocument) -> None:
        """
        Persist the whole document.

        Raises:
            LedgerWriteError: If the document could not be written
        """


class JsonLedgerRepository(LedgerRepository):
    """Single pretty-printed JSON file, e.g. scanner/db.json"""

    def __init__(self, path: str) -> None:
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def load(self) -> LedgerDocument:
        try:
            with open(self._path, encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            logger.debug(f"Ledger {self._path} not found, starting empty")
            return LedgerDocument()
        except (OSError, ValueError) as e:
            logger.warning(f"Could not read ledger {self._path}: {e}. Treating as empty")
            return LedgerDocument()
        return LedgerDocument.from_json(data)

    def save(self, document: LedgerDocument) -> None:
        tmp_path = f"{self._path}.tmp"
        try:
            directory = os.path.dirname(self._path)
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(document.to_json(), f, indent=2, ensure_ascii=False)
            os.replace(tmp_path, self._path)
        except OSError as e:
            logger.error(f"Failed to write ledger {self._path}: {e}", exc_info=True)
            raise LedgerWriteError(f"Failed to write ledger {self._path}: {e}") from e

    def __repr__(self) -> str:
        return f"JsonLedgerRepository(path={self._path!r})"
