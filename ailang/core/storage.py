"""Durable key/value blob storage.

The translation cache and the language preference persist through ``KeyValueStorage``.
``SQLiteStorage`` keeps records in a single SQLite table; ``MemoryStorage`` keeps them in a dict
and is used when nothing needs to survive the process.

All methods are synchronous. Async callers wrap them with ``asyncio.to_thread``.
"""

from __future__ import annotations

import sqlite3
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import TYPE_CHECKING, Self

from ailang.utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging


__all__: list[str] = ["KeyValueStorage", "MemoryStorage", "SQLiteStorage", "StorageError"]

logger: logging.Logger = LoggerUtils.get_logger(__name__)


class StorageError(Exception):
    """A storage backend failed to read or write a record."""


class KeyValueStorage(ABC):
    """Opaque named-record store."""

    @abstractmethod
    def get(self, name: str) -> bytes | None:
        """Return the record stored under ``name``, or None when absent.

        Raises:
            StorageError: If the backend cannot be read.
        """

    @abstractmethod
    def set(self, name: str, data: bytes) -> None:
        """Create or replace the record stored under ``name``.

        Raises:
            StorageError: If the backend cannot be written.
        """

    @abstractmethod
    def remove(self, name: str) -> None:
        """Delete the record stored under ``name``. Missing records are ignored.

        Raises:
            StorageError: If the backend cannot be written.
        """

    def close(self) -> None:  # noqa: B027
        """Release backend resources."""

    def __enter__(self) -> Self:
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        _ = exc_type, exc_val, exc_tb
        self.close()


class MemoryStorage(KeyValueStorage):
    """In-process storage backed by a dict."""

    def __init__(self, initial: dict[str, bytes] | None = None) -> None:
        self._records: dict[str, bytes] = dict(initial or {})

    def get(self, name: str) -> bytes | None:
        return self._records.get(name)

    def set(self, name: str, data: bytes) -> None:
        self._records[name] = bytes(data)

    def remove(self, name: str) -> None:
        self._records.pop(name, None)

    def __contains__(self, name: object) -> bool:
        return name in self._records


class SQLiteStorage(KeyValueStorage):
    """SQLite3-based record storage.

    The connection is opened lazily on first use and may be shared across the worker threads
    that ``asyncio.to_thread`` dispatches to; a lock serialises access.

    Attributes:
        db_path (Path): Path to the SQLite database file.
        _connection (sqlite3.Connection | None): Active database connection.
    """

    def __init__(self, db_path: str | Path) -> None:
        """Initialize the storage with the path to the database file.

        Args:
            db_path (str | Path): Path to the SQLite database file.

        Raises:
            StorageError: If the database path is empty.
        """
        if str(db_path).strip() == "":
            msg: str = "The database path is empty."
            raise StorageError(msg)

        self.db_path: Path = Path(db_path)
        self._connection: sqlite3.Connection | None = None
        self._lock: threading.Lock = threading.Lock()
        logger.debug("Storage database path set to: %s", self.db_path)

    def _initialize_database(self) -> sqlite3.Connection:
        """Open the connection and create the records table if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        connection: sqlite3.Connection = sqlite3.connect(
            str(self.db_path),
            check_same_thread=False,
            isolation_level=None,  # autocommit
        )
        connection.execute(
            """
            CREATE TABLE IF NOT EXISTS records (
                name TEXT PRIMARY KEY,
                data BLOB NOT NULL
            )
            """
        )
        logger.debug("Storage database initialized: %s", self.db_path)
        return connection

    @property
    def connection(self) -> sqlite3.Connection:
        """Active database connection, opened on first access."""
        if self._connection is None:
            self._connection = self._initialize_database()
        return self._connection

    def get(self, name: str) -> bytes | None:
        try:
            with self._lock:
                row = self.connection.execute("SELECT data FROM records WHERE name = ?", (name,)).fetchone()
        except sqlite3.Error as err:
            msg: str = f"Failed to read record '{name}': {err}"
            raise StorageError(msg) from err
        if row is None:
            return None
        return bytes(row[0])

    def set(self, name: str, data: bytes) -> None:
        try:
            with self._lock:
                self.connection.execute(
                    "INSERT OR REPLACE INTO records (name, data) VALUES (?, ?)",
                    (name, sqlite3.Binary(data)),
                )
        except sqlite3.Error as err:
            msg: str = f"Failed to write record '{name}': {err}"
            raise StorageError(msg) from err
        logger.debug("Saved record '%s' (%d bytes)", name, len(data))

    def remove(self, name: str) -> None:
        try:
            with self._lock:
                self.connection.execute("DELETE FROM records WHERE name = ?", (name,))
        except sqlite3.Error as err:
            msg: str = f"Failed to delete record '{name}': {err}"
            raise StorageError(msg) from err
        logger.debug("Deleted record '%s'", name)

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._connection is not None:
                self._connection.close()
                self._connection = None
                logger.debug("Storage database connection closed")
