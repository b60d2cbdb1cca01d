"""
Storage Backend Module

Provides the backing-store interface for the ledger document and
implementations for in-memory (testing), JSON file, and SQLite persistence.
Every backend loads and saves the whole document at once.
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional, Any, Union
from datetime import datetime, timezone
import sqlite3
import json
import os
import tempfile
import threading
from pathlib import Path

from .logging_config import get_logger


logger = get_logger("simple_bank.storage")


class StorageInterface(ABC):
    """Abstract interface for ledger document backends"""

    @abstractmethod
    def load(self) -> Optional[Dict[str, Any]]:
        """Load the whole document, or None if nothing was stored yet"""
        pass

    @abstractmethod
    def save(self, document: Dict[str, Any]) -> None:
        """Replace the stored document"""
        pass

    @abstractmethod
    def exists(self) -> bool:
        """Check if a document has been stored"""
        pass

    def close(self) -> None:
        """Close storage connection (default no-op)"""
        pass


class InMemoryStorage(StorageInterface):
    """In-memory storage implementation for testing"""

    def __init__(self, document: Optional[Dict[str, Any]] = None):
        self._data: Optional[str] = None
        self._lock = threading.RLock()
        if document is not None:
            self.save(document)

    def load(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if self._data is None:
                return None
            # Fresh copy so callers never share state with the store
            return json.loads(self._data)

    def save(self, document: Dict[str, Any]) -> None:
        with self._lock:
            self._data = json.dumps(document, default=str)

    def exists(self) -> bool:
        with self._lock:
            return self._data is not None

    def dump(self) -> Optional[str]:
        """Raw serialized document for inspection"""
        with self._lock:
            return self._data


class JSONFileStorage(StorageInterface):
    """Flat JSON file storage, rewritten in full on every save"""

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self._lock = threading.RLock()

    def load(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            if not self.path.exists():
                return None
            with open(self.path, "r", encoding="utf-8") as f:
                return json.load(f)

    def save(self, document: Dict[str, Any]) -> None:
        with self._lock:
            self.path.parent.mkdir(parents=True, exist_ok=True)

            # Write to a sibling temp file then swap it in, so readers never
            # see a partially written document
            fd, tmp_path = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=f".{self.path.name}.", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as f:
                    json.dump(document, f, indent=2, ensure_ascii=False, default=str)
                os.replace(tmp_path, self.path)
            except BaseException:
                if os.path.exists(tmp_path):
                    os.unlink(tmp_path)
                raise

            logger.debug(f"Wrote ledger document to {self.path}")

    def exists(self) -> bool:
        with self._lock:
            return self.path.exists()


class SQLiteStorage(StorageInterface):
    """SQLite storage implementation holding the document in a single row"""

    DOCUMENT_ID = "ledger"

    def __init__(self, db_path: Union[str, Path] = ":memory:"):
        self.db_path = str(db_path)
        if self.db_path != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection = sqlite3.connect(self.db_path, check_same_thread=False)
        self._connection.row_factory = sqlite3.Row
        self._lock = threading.RLock()

        with self._lock:
            if self.db_path != ":memory:":
                self._connection.execute("PRAGMA journal_mode = WAL")
            self._connection.execute("""
                CREATE TABLE IF NOT EXISTS documents (
                    id TEXT PRIMARY KEY,
                    data TEXT NOT NULL,
                    updated_at TEXT NOT NULL
                )
            """)
            self._connection.commit()

    def load(self) -> Optional[Dict[str, Any]]:
        with self._lock:
            cursor = self._connection.execute(
                "SELECT data FROM documents WHERE id = ?", (self.DOCUMENT_ID,)
            )
            row = cursor.fetchone()
            if row:
                return json.loads(row['data'])
            return None

    def save(self, document: Dict[str, Any]) -> None:
        with self._lock:
            now = datetime.now(timezone.utc).isoformat()
            data_json = json.dumps(document, default=str)
            try:
                self._connection.execute(
                    "INSERT OR REPLACE INTO documents (id, data, updated_at) VALUES (?, ?, ?)",
                    (self.DOCUMENT_ID, data_json, now)
                )
                self._connection.commit()
            except sqlite3.Error:
                self._connection.rollback()
                raise

    def exists(self) -> bool:
        with self._lock:
            cursor = self._connection.execute(
                "SELECT 1 FROM documents WHERE id = ? LIMIT 1", (self.DOCUMENT_ID,)
            )
            return cursor.fetchone() is not None

    def close(self) -> None:
        with self._lock:
            self._connection.close()


def create_storage(url: str) -> StorageInterface:
    """
    Pick a storage backend from a URL.

    Args:
        url: "memory://", "sqlite:///path/to.db", "file://path/to.json"
            or a plain path to a JSON file

    Returns:
        Storage backend instance
    """
    if url == "memory://":
        return InMemoryStorage()
    if url.startswith("sqlite:///"):
        return SQLiteStorage(url[len("sqlite:///"):] or ":memory:")
    if url.startswith("file://"):
        return JSONFileStorage(url[len("file://"):])
    return JSONFileStorage(url)
