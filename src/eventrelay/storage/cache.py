"""
Module: cache.py
Description: Retry cache for events whose delivery failed.

Wraps SQLiteStore with a lock so worker threads can push, pop and remove
records concurrently. Every operation holds the lock for exactly one
store call; a pop followed by a remove is not atomic, which is fine
because remove matches the exact (key, payload) pair.

If the store is unavailable the cache degrades to no-ops returning
empty results: the dispatcher keeps delivering, without durability.
"""

import sqlite3
import threading
from typing import Callable, List, TypeVar

from eventrelay.models.event import CacheRecord
from eventrelay.storage.sqlite import SQLiteStore, StoreUnavailableError
from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

_STORE_ERRORS = (sqlite3.Error, StoreUnavailableError)


class RetryCache:
    """
    Durable, thread-safe log of failed events.

    Attributes:
        store: Backing SQLiteStore

    Example:
        >>> cache = RetryCache(SQLiteStore("cache.db"))
        >>> cache.push(encode_key(["Accept: */*"], url), payload)
        >>> [record.decode() for record in cache.pop(10)]
        [(['Accept: */*'], url)]
    """

    def __init__(self, store: SQLiteStore):
        self.store = store
        self._lock = threading.Lock()

        if not store.connected:
            logger.warning("Retry cache running without a store", path=store.path)

    @property
    def connected(self) -> bool:
        return self.store.connected

    def _run(self, operation: str, default: T, fn: Callable[[], T]) -> T:
        if not self.store.connected:
            return default
        with self._lock:
            try:
                return fn()
            except _STORE_ERRORS as e:
                logger.error(
                    "Retry cache operation failed",
                    operation=operation,
                    path=self.store.path,
                    error=str(e)
                )
                return default

    def push(self, key: str, payload: str) -> None:
        """Store a failed event. Duplicates are kept."""
        self._run("push", None, lambda: self.store.insert(key, payload))

    def pop(self, count: int) -> List[CacheRecord]:
        """
        Return up to count stored records without removing them.

        Removal is explicit (remove()) so a record can be resent first.
        """
        if count <= 0:
            return []
        rows = self._run("pop", [], lambda: self.store.select(count))
        return [CacheRecord(key=name, payload=event) for name, event in rows]

    def remove(self, key: str, payload: str) -> None:
        """Delete one record matching both fields; no-op if absent."""
        self._run("remove", 0, lambda: self.store.delete(key, payload))

    def exists(self, key: str, payload: str) -> bool:
        return self._run("exists", False, lambda: self.store.exists(key, payload))

    def count(self) -> int:
        return self._run("count", 0, self.store.count)

    def clear(self) -> None:
        """Delete every stored record."""
        removed = self._run("clear", 0, self.store.delete_all)
        logger.info("Retry cache cleared", removed=removed)

    def close(self) -> None:
        """Close the backing store once no operation is running."""
        with self._lock:
            self.store.close()
