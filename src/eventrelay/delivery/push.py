"""
Module: push.py
Description: HTTP push of events to a collector.

Implements the transport used by the dispatcher: one POST per call,
returning the HTTP status code, or 0 when no HTTP response was
obtained (timeout, network error, malformed url).
"""

import time
from typing import List, Optional, Protocol, Sequence, TextIO, Tuple

import httpx

from eventrelay.config.settings import settings
from eventrelay.delivery.retry import delivery_retry
from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)

# Status reported when no HTTP response was received
TRANSPORT_FAILURE = 0


class Transport(Protocol):
    """Anything able to POST an event and report a status code."""

    def post(
        self,
        url: str,
        payload: str,
        headers: Optional[Sequence[str]] = None,
        reply: Optional[TextIO] = None
    ) -> int: ...


def is_success(status: int) -> bool:
    """Return True for 2xx status codes."""
    return 200 <= status < 300


def parse_headers(headers: Sequence[str]) -> List[Tuple[str, str]]:
    """
    Turn "Name: value" lines into (name, value) pairs, keeping order.

    Lines without a colon are skipped.
    """
    pairs = []
    for line in headers:
        name, sep, value = line.partition(":")
        if not sep or not name.strip():
            logger.debug("Skipping malformed header", header=line)
            continue
        pairs.append((name.strip(), value.strip()))
    return pairs


class HttpTransport:
    """
    HTTP client for pushing events to collectors.

    Safe to share between worker threads: every call opens its own
    httpx.Client.

    Attributes:
        timeout: httpx timeout applied to each request
        default_headers: Headers used when a call passes none
        attempts: Attempts per call on connection-level errors
        max_wait: Backoff ceiling between attempts, in seconds

    Example:
        >>> transport = HttpTransport(timeout_seconds=5)
        >>> transport.post("https://collector.example.com/events", '{"a": 1}')
        201
    """

    def __init__(
        self,
        timeout_seconds: Optional[float] = None,
        default_headers: Optional[Sequence[str]] = None,
        attempts: Optional[int] = None,
        max_wait: Optional[float] = None,
        http_transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize the transport.

        Args:
            timeout_seconds: HTTP timeout, settings.delivery_timeout by default
            default_headers: settings.default_headers by default
            attempts: settings.transport_attempts by default
            max_wait: settings.transport_max_wait by default
            http_transport: Optional httpx transport (tests use httpx.MockTransport)

        Raises:
            ValueError: If attempts is lower than 1
        """
        timeout_seconds = settings.delivery_timeout if timeout_seconds is None else timeout_seconds
        self.timeout = httpx.Timeout(timeout_seconds, connect=timeout_seconds)
        self.default_headers = list(
            settings.default_headers if default_headers is None else default_headers
        )
        self.attempts = settings.transport_attempts if attempts is None else attempts
        self.max_wait = settings.transport_max_wait if max_wait is None else max_wait
        self._http_transport = http_transport

        if self.attempts < 1:
            raise ValueError("attempts must be at least 1")

        logger.info(
            "HTTP transport initialized",
            timeout_seconds=timeout_seconds,
            attempts=self.attempts
        )

    def _send(self, url: str, payload: str, headers: Sequence[str]) -> httpx.Response:
        with httpx.Client(timeout=self.timeout, transport=self._http_transport) as client:
            return client.post(
                url,
                content=payload.encode("utf-8"),
                headers=parse_headers(headers)
            )

    def post(
        self,
        url: str,
        payload: str,
        headers: Optional[Sequence[str]] = None,
        reply: Optional[TextIO] = None
    ) -> int:
        """
        POST payload to url.

        Args:
            url: Collector endpoint
            payload: Request body
            headers: Ordered "Name: value" lines; default_headers when None
            reply: Optional text buffer; cleared, then filled with the response body

        Returns:
            HTTP status code, or 0 if no response was received
        """
        if headers is None:
            headers = self.default_headers

        if reply is not None:
            reply.seek(0)
            reply.truncate()

        logger.debug("Attempting POST", url=url, payload=payload)

        started = time.monotonic()
        try:
            for attempt in delivery_retry(self.attempts, self.max_wait):
                with attempt:
                    response = self._send(url, payload, headers)

        except httpx.TimeoutException:
            logger.warning("POST timeout", url=url, attempts=self.attempts)
            return TRANSPORT_FAILURE

        except httpx.NetworkError as e:
            logger.warning(
                "POST network error",
                url=url,
                attempts=self.attempts,
                error=str(e)
            )
            return TRANSPORT_FAILURE

        except Exception as e:
            logger.error(
                "POST failed",
                url=url,
                error=str(e),
                error_type=type(e).__name__
            )
            return TRANSPORT_FAILURE

        if reply is not None:
            reply.write(response.text)

        logger.info(
            "POST completed",
            url=url,
            status_code=response.status_code,
            response_time_ms=round((time.monotonic() - started) * 1000, 3)
        )

        return response.status_code
