"""
Module: delivery/retry.py
Description: Retry policy for a single HTTP POST.

Connection-level errors (timeouts, refused connections, resets) are
retried in place with exponential backoff before the transport reports
status 0. HTTP error statuses are not retried here: they are final for
the attempt and the dispatcher routes the event into the retry cache.
"""

import httpx
from tenacity import (
    RetryCallState,
    Retrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from eventrelay.utils.logger import get_logger

logger = get_logger(__name__)

RETRYABLE_ERRORS = (
    httpx.TimeoutException,
    httpx.NetworkError,
)


def _log_retry(retry_state: RetryCallState) -> None:
    """Log each scheduled retry with the error that caused it."""
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "POST failed, retrying",
        attempt=retry_state.attempt_number,
        wait_seconds=retry_state.next_action.sleep if retry_state.next_action else 0,
        error=str(error),
        error_type=type(error).__name__
    )


def delivery_retry(attempts: int, max_wait: float) -> Retrying:
    """
    Build the retry controller for one POST.

    Args:
        attempts: Total attempts, including the first one
        max_wait: Upper bound in seconds for the wait between attempts

    Returns:
        tenacity Retrying instance; iterate it and run the call inside
        each yielded attempt. The last error is re-raised when attempts
        run out.
    """
    return Retrying(
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=0.5, max=max_wait),
        retry=retry_if_exception_type(RETRYABLE_ERRORS),
        before_sleep=_log_retry,
        reraise=True
    )
