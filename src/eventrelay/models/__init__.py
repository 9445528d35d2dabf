"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains the data models used by the forwarder:
- Event: One (url, payload, headers) submission awaiting delivery
- CacheRecord: A failed event as stored in the retry cache

All models are exported here for convenient importing.
"""

from .event import CacheRecord, Event

__all__ = [
    "Event",
    "CacheRecord",
]
