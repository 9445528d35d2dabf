"""
Module: storage
Description: Package initialization for the persistence layer.

This package contains the storage used by the forwarder:
- sqlite: SQLiteStore, the file-backed table of failed events
- cache: RetryCache, the thread-safe wrapper used by the dispatcher
"""

from .cache import RetryCache
from .sqlite import SQLiteStore

__all__ = ["RetryCache", "SQLiteStore"]
