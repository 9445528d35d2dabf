"""eventrelay - durable HTTP event forwarder with a local retry cache."""

from eventrelay.config.settings import Settings, settings
from eventrelay.core import DispatcherContext, get_context, reset_context
from eventrelay.delivery.dispatcher import Dispatcher
from eventrelay.delivery.keys import decode_key, encode_key
from eventrelay.delivery.pool import WorkerPool
from eventrelay.delivery.push import HttpTransport, Transport, is_success
from eventrelay.models.event import CacheRecord, Event
from eventrelay.storage.cache import RetryCache
from eventrelay.storage.sqlite import SQLiteStore

__version__ = "0.3.0"

__all__ = [
    "CacheRecord",
    "Dispatcher",
    "DispatcherContext",
    "Event",
    "HttpTransport",
    "RetryCache",
    "SQLiteStore",
    "Settings",
    "Transport",
    "WorkerPool",
    "decode_key",
    "encode_key",
    "get_context",
    "is_success",
    "reset_context",
    "settings",
    "__version__",
]
