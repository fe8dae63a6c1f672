"""Retry utilities with exponential backoff."""

import httpx
import structlog
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

logger = structlog.get_logger().bind(source="retry")

# Connection resets, timeouts, DNS failures. HTTP status errors are final.
TRANSIENT_HTTP_ERRORS = (httpx.TransportError,)


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "http_retry",
        attempt=state.attempt_number,
        wait_seconds=round(state.next_action.sleep, 2) if state.next_action else None,
        error=str(exc) if exc else None,
        error_type=type(exc).__name__ if exc else None,
    )


def http_retry(
    max_attempts: int = 3,
    min_wait: float = 2.0,
    max_wait: float = 10.0,
    exceptions: tuple = TRANSIENT_HTTP_ERRORS,
):
    """Retry decorator for calls against the rule repository API.

    Works on sync and async callables. The last exception is re-raised once
    attempts run out.

    Args:
        max_attempts: Max attempts, first call included
        min_wait: Min wait between retries (seconds)
        max_wait: Max wait between retries (seconds)
        exceptions: Exception types to retry on
    """
    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=1, min=min_wait, max=max_wait),
        retry=retry_if_exception_type(exceptions),
        before_sleep=_log_retry,
        reraise=True,
    )
