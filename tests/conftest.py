"""
Module: conftest.py
Description: Shared pytest fixtures for eventrelay tests.

Provides test settings, SQLite-backed caches in temporary directories,
and a scripted transport that answers with configurable status codes
without touching the network.
"""

import threading
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

import pytest

from eventrelay.config.settings import Settings
from eventrelay.delivery.dispatcher import Dispatcher
from eventrelay.storage.cache import RetryCache
from eventrelay.storage.sqlite import SQLiteStore


class ScriptedTransport:
    """
    Transport double returning a status per url.

    Records every call as (url, payload, headers). Thread-safe, since
    dispatcher workers call it concurrently.
    """

    def __init__(self, default_status: int = 200):
        self.default_status = default_status
        self.statuses: Dict[str, int] = {}
        self.calls: List[Tuple[str, str, Optional[List[str]]]] = []
        self._lock = threading.Lock()

    def respond(self, url: str, status: int) -> None:
        with self._lock:
            self.statuses[url] = status

    def post(
        self,
        url: str,
        payload: str,
        headers: Optional[Sequence[str]] = None,
        reply: Optional[TextIO] = None
    ) -> int:
        with self._lock:
            self.calls.append((url, payload, None if headers is None else list(headers)))
            status = self.statuses.get(url, self.default_status)
        if reply is not None:
            reply.write(f"status {status}")
        return status

    def calls_to(self, url: str) -> List[Tuple[str, str, Optional[List[str]]]]:
        with self._lock:
            return [call for call in self.calls if call[0] == url]


@pytest.fixture
def test_settings(tmp_path):
    """
    Provide test configuration settings.

    Disables .env loading and points the cache at a temporary file.
    """
    return Settings(
        _env_file=None,
        log_level="DEBUG",
        cache_path=str(tmp_path / "cache" / "events.db"),
        worker_count=2,
        transport_attempts=1,
        transport_max_wait=0
    )


@pytest.fixture
def store(test_settings):
    """Provide an open SQLiteStore in a temporary directory."""
    store = SQLiteStore(test_settings.cache_path)
    yield store
    store.close()


@pytest.fixture
def cache(store):
    """Provide a RetryCache over the temporary store."""
    return RetryCache(store)


@pytest.fixture
def transport():
    """Provide a ScriptedTransport answering 200 unless told otherwise."""
    return ScriptedTransport()


@pytest.fixture
def dispatcher(transport, cache, test_settings):
    """
    Provide a running Dispatcher with two workers.

    Closed after the test so no worker thread outlives it.
    """
    dispatcher = Dispatcher(
        transport=transport,
        cache=cache,
        worker_count=test_settings.worker_count
    )
    yield dispatcher
    dispatcher.close()


@pytest.fixture
def collector_url():
    return "https://collector.test/events"
