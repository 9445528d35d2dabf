"""
Module: delivery/dispatcher.py
Description: Asynchronous event delivery with a durable retry cache.

The Dispatcher posts events from a worker pool so callers never wait on
the network. An event answered with anything but 2xx (or with no answer
at all) is written to the retry cache; flush_cache() later replays cached
records and deletes only those that go through.

Delivery is at-least-once: a record is removed after its resend
succeeds, so a crash between the two leaves a duplicate, never a loss.
"""

from typing import Optional, Sequence

from eventrelay.config.settings import settings
from eventrelay.delivery.pool import WorkerPool
from eventrelay.delivery.push import TRANSPORT_FAILURE, HttpTransport, Transport, is_success
from eventrelay.models.event import CacheRecord, Event
from eventrelay.storage.cache import RetryCache
from eventrelay.storage.sqlite import SQLiteStore
from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)


class Dispatcher:
    """
    Fire-and-forget event dispatcher.

    The worker pool starts as soon as the dispatcher is built.

    Attributes:
        transport: Sends one POST and returns the status code
        cache: Retry cache receiving failed events
        pool: Worker pool running send and resend tasks

    Example:
        >>> dispatcher = Dispatcher()
        >>> dispatcher.submit_event("https://collector.example.com/e", '{"a": 1}')
        >>> dispatcher.flush_cache(50)
        >>> dispatcher.flush()  # wait for both to finish
    """

    def __init__(
        self,
        transport: Optional[Transport] = None,
        cache: Optional[RetryCache] = None,
        worker_count: Optional[int] = None
    ):
        """
        Build the dispatcher and start its workers.

        Args:
            transport: HttpTransport() by default
            cache: RetryCache over settings.cache_path by default; a cache
                built here is closed by close()
            worker_count: settings.worker_count, else the CPU count
        """
        self.transport = transport if transport is not None else HttpTransport()
        self._owns_cache = cache is None
        self.cache = cache if cache is not None else RetryCache(SQLiteStore(settings.cache_path))
        self.pool = WorkerPool(worker_count if worker_count is not None else settings.worker_count)

        self.respawn()

    @property
    def running(self) -> bool:
        return self.pool.running

    @property
    def worker_count(self) -> int:
        return self.pool.worker_count

    @property
    def pending(self) -> int:
        return self.pool.pending

    def submit_event(
        self,
        url: str,
        payload: str,
        headers: Optional[Sequence[str]] = None
    ) -> None:
        """
        Queue an event for delivery and return immediately.

        Args:
            url: Collector endpoint
            payload: Request body
            headers: Ordered "Name: value" lines, sent as given; None sends
                the transport's default headers

        Raises:
            pydantic.ValidationError: If url is empty or payload is not a string
        """
        event = Event(url=url, payload=payload, headers=list(headers or []))
        send_headers = None if headers is None else event.headers
        logger.info("Queueing event", url=event.url, payload=event.payload)

        def send() -> None:
            status = self._post(event.url, event.payload, send_headers)

            if is_success(status):
                logger.info("Sent event", url=event.url, status_code=status)
                return

            record = event.to_record()
            self.cache.push(record.key, record.payload)
            logger.warning(
                "Cached event",
                url=event.url,
                payload=event.payload,
                status_code=status
            )

        self.pool.submit(send)

    def flush_cache(self, count: Optional[int] = None) -> None:
        """
        Queue a replay of up to count cached records and return immediately.

        Each record is resent by its own task; records are independent.

        Args:
            count: Records to replay, settings.flush_batch_size by default
        """
        if count is None:
            count = settings.flush_batch_size

        logger.info("Queueing cache flush", count=count)

        def replay() -> None:
            records = self.cache.pop(count)
            if not records:
                logger.debug("Retry cache empty")
                return

            logger.info("Replaying cached events", records=len(records))
            for record in records:
                self.pool.submit(lambda record=record: self._resend(record))

        self.pool.submit(replay)

    def _post(self, url: str, payload: str, headers: Optional[Sequence[str]]) -> int:
        """Call the transport, reporting a raising transport as status 0."""
        try:
            return self.transport.post(url, payload, headers)
        except Exception as e:
            logger.error(
                "Transport raised",
                url=url,
                error=str(e),
                error_type=type(e).__name__
            )
            return TRANSPORT_FAILURE

    def _resend(self, record: CacheRecord) -> None:
        headers, url = record.decode()
        logger.debug("Resending cached event", url=url, payload=record.payload)

        status = self._post(url, record.payload, headers)

        if is_success(status):
            self.cache.remove(record.key, record.payload)
            logger.info("Removed cached event", url=url, status_code=status)
        else:
            logger.info(
                "Failed resending cached event",
                url=url,
                payload=record.payload,
                status_code=status
            )

    def clear_cache(self) -> None:
        """Delete every cached record."""
        self.cache.clear()

    def shutdown(self) -> None:
        """
        Finish every queued and running task, then stop the workers.

        Blocks until the workers are joined. Idempotent.
        """
        self.pool.drain_and_stop()

    def respawn(self) -> None:
        """Start a fresh worker set; tasks queued meanwhile are kept."""
        self.pool.start()

    def flush(self) -> None:
        """Drain outstanding work, then resume with fresh workers."""
        logger.info("Flushing dispatcher")
        self.pool.restart()
        logger.info("Flush finished")

    def close(self) -> None:
        """
        Final shutdown: drain running work and drop anything still queued.

        Tasks queued while the dispatcher was stopped are abandoned.
        """
        self.shutdown()
        self.pool.discard_pending()
        if self._owns_cache:
            self.cache.close()
        logger.info("Dispatcher closed")
