"""Bounded retries for transient storage failures."""

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from slotbook.core.exceptions import TransientStorageException

logger = structlog.get_logger()


def _log_retry(retry_state: RetryCallState) -> None:
    error = retry_state.outcome.exception() if retry_state.outcome else None
    logger.warning(
        "storage_retry",
        attempt=retry_state.attempt_number,
        error_type=type(error).__name__,
        error=str(error),
    )


def storage_retrying(max_attempts: int) -> AsyncRetrying:
    """
    Retry policy for a unit of work that may hit a transient storage error.

    The unit is re-run from scratch on every attempt. After ``max_attempts``
    the last error is re-raised unchanged.

    Usage:
        async for attempt in storage_retrying(3):
            with attempt:
                ...
    """
    return AsyncRetrying(
        retry=retry_if_exception_type(TransientStorageException),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential_jitter(initial=0.05, max=1.0, jitter=0.05),
        before_sleep=_log_retry,
        reraise=True,
    )
