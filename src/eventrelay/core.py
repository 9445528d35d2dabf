"""
Module: core.py
Description: Ownership of the shared Dispatcher.

A DispatcherContext holds at most one Dispatcher and hands it out to
call sites. One lock covers every read-modify-write of the handle, so
current(), renew() and release() never interleave. Holders are counted
explicitly: acquire() adds one, detach() gives it back.

Applications usually create one context at their entry point and pass it
around; get_context() offers a process-wide default for code that cannot.
"""

import atexit
import threading
from contextlib import contextmanager
from typing import Callable, Iterator, Optional

from eventrelay.delivery.dispatcher import Dispatcher
from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)

DispatcherFactory = Callable[[], Dispatcher]


class DispatcherContext:
    """
    Lazily created, explicitly released Dispatcher handle.

    Example:
        >>> context = DispatcherContext()
        >>> with context.borrow() as dispatcher:
        ...     dispatcher.submit_event(url, payload, headers)
        >>> context.release()  # drains and joins the workers
    """

    def __init__(self, factory: Optional[DispatcherFactory] = None):
        """
        Args:
            factory: Builds the Dispatcher on renew(); Dispatcher() by default
        """
        self._factory = factory or Dispatcher
        self._lock = threading.Lock()
        self._dispatcher: Optional[Dispatcher] = None
        self._holders = 0

    def current(self) -> Optional[Dispatcher]:
        """Return the existing Dispatcher, or None. Never creates one."""
        with self._lock:
            return self._dispatcher

    def renew(self) -> Dispatcher:
        """Create the Dispatcher if there is none; return it."""
        with self._lock:
            return self._renew_locked()

    def _renew_locked(self) -> Dispatcher:
        if self._dispatcher is None:
            self._dispatcher = self._factory()
            self._holders = 0
            logger.info("Dispatcher created")
        return self._dispatcher

    def release(self) -> None:
        """
        Shut down and drop the Dispatcher, if any.

        Blocks while running tasks drain. Holders still using the old
        instance keep a stopped Dispatcher.
        """
        with self._lock:
            dispatcher, self._dispatcher = self._dispatcher, None
            self._holders = 0

        if dispatcher is not None:
            dispatcher.close()
            logger.info("Dispatcher released")

    def acquire(self) -> Dispatcher:
        """Return the Dispatcher, creating it if needed, and count one holder."""
        with self._lock:
            dispatcher = self._renew_locked()
            self._holders += 1
            return dispatcher

    def detach(self) -> None:
        """Give back a holder taken by acquire()."""
        with self._lock:
            if self._holders > 0:
                self._holders -= 1

    @contextmanager
    def borrow(self) -> Iterator[Dispatcher]:
        """acquire() for the duration of a with block."""
        dispatcher = self.acquire()
        try:
            yield dispatcher
        finally:
            self.detach()

    @property
    def reference_count(self) -> int:
        """Holders of the current Dispatcher; 0 when there is none."""
        with self._lock:
            return self._holders if self._dispatcher is not None else 0


_default_context: Optional[DispatcherContext] = None
_default_lock = threading.Lock()


def get_context() -> DispatcherContext:
    """Return the process-wide context, creating it on first use."""
    global _default_context
    with _default_lock:
        if _default_context is None:
            _default_context = DispatcherContext()
        return _default_context


def reset_context() -> None:
    """Release the process-wide context's Dispatcher and forget the context."""
    global _default_context
    with _default_lock:
        context, _default_context = _default_context, None
    if context is not None:
        context.release()


atexit.register(reset_context)
