"""
Module: sqlite.py
Description: SQLite store for failed events.

Provides row operations over a single table mapping (name, event) text
pairs, where name is the encoded cache key and event the payload. There
is no primary key: identical rows may coexist.

Key Components:
- SQLiteStore: file-backed store, created on first use
- Disabled state: an open failure leaves the store permanently unusable
- Error handling: sqlite3 errors are logged and re-raised to the caller

Dependencies: sqlite3, pathlib
"""

import sqlite3
from pathlib import Path
from typing import List, Optional, Tuple

from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)

_SCHEMA = "CREATE TABLE IF NOT EXISTS cache (name TEXT, event TEXT)"


class StoreUnavailableError(Exception):
    """Raised when operating on a store that failed to open or was closed."""


class SQLiteStore:
    """
    SQLite client for cached event rows.

    The connection is opened once, in the constructor, and shared across
    threads; callers serialize access (see RetryCache).

    Attributes:
        path: Location of the database file
        connected: False if the file could not be opened or was closed

    Example:
        >>> store = SQLiteStore("/var/lib/eventrelay/cache.db")
        >>> store.insert("24:https://collector.test/e", '{"a": 1}')
        >>> store.count()
        1
    """

    def __init__(self, path: str):
        """
        Open or create the database file.

        Args:
            path: Database file; ":memory:" gives a private in-memory table

        Raises:
            ValueError: If path is empty
        """
        if not path or not isinstance(path, str):
            raise ValueError("path must be a non-empty string")

        self.path = path
        self._connection: Optional[sqlite3.Connection] = None

        try:
            if path != ":memory:":
                Path(path).parent.mkdir(parents=True, exist_ok=True)
            connection = sqlite3.connect(path, check_same_thread=False)
            with connection:
                connection.execute(_SCHEMA)
            self._connection = connection

            logger.info("SQLite store opened", path=path)

        except (OSError, sqlite3.Error) as e:
            logger.error(
                "Failed to open SQLite store, failed events will not be kept",
                path=path,
                error=str(e)
            )

    @property
    def connected(self) -> bool:
        return self._connection is not None

    def _conn(self) -> sqlite3.Connection:
        if self._connection is None:
            raise StoreUnavailableError(f"SQLite store at {self.path} is not open")
        return self._connection

    def insert(self, name: str, event: str) -> None:
        """Append one row."""
        conn = self._conn()
        with conn:
            conn.execute("INSERT INTO cache (name, event) VALUES (?, ?)", (name, event))

    def exists(self, name: str, event: str) -> bool:
        """Return True if at least one row matches both columns."""
        row = self._conn().execute(
            "SELECT 1 FROM cache WHERE name = ? AND event = ? LIMIT 1",
            (name, event)
        ).fetchone()
        return row is not None

    def select(self, limit: int) -> List[Tuple[str, str]]:
        """Return up to limit rows in insertion order."""
        return self._conn().execute(
            "SELECT name, event FROM cache ORDER BY rowid LIMIT ?",
            (limit,)
        ).fetchall()

    def delete(self, name: str, event: str) -> int:
        """
        Delete one row matching both columns.

        Only one of several identical rows goes away, so every failed
        submission needs its own successful resend.

        Returns:
            Number of rows deleted (0 or 1)
        """
        conn = self._conn()
        with conn:
            cursor = conn.execute(
                "DELETE FROM cache WHERE rowid = "
                "(SELECT rowid FROM cache WHERE name = ? AND event = ? LIMIT 1)",
                (name, event)
            )
        return cursor.rowcount

    def count(self) -> int:
        """Return the number of rows."""
        (total,) = self._conn().execute("SELECT COUNT(*) FROM cache").fetchone()
        return total

    def delete_all(self) -> int:
        """Delete every row and return how many were removed."""
        conn = self._conn()
        with conn:
            cursor = conn.execute("DELETE FROM cache")
        return cursor.rowcount

    def close(self) -> None:
        """Close the connection. The store is disabled afterwards."""
        if self._connection is not None:
            self._connection.close()
            self._connection = None
            logger.info("SQLite store closed", path=self.path)
