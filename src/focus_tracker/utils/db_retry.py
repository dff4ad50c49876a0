"""Retry helper for transient repository failures."""

import logging
import time
from typing import Callable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Errors containing these fragments will not succeed on a second attempt.
_NON_RETRYABLE = ("constraint", "unique", "foreign key", "not found", "invalid")


def is_retryable(error: Exception) -> bool:
    message = str(error).lower()
    return not any(fragment in message for fragment in _NON_RETRYABLE)


def retry_db_operation(
    operation: Callable[[], T],
    max_retries: int = 2,
    base_delay: float = 0.1,
) -> T:
    """Run ``operation``, retrying with exponential backoff on transient errors.

    ``max_retries`` is the total number of attempts. The last error is re-raised
    unchanged once attempts run out or the error is not retryable.
    """
    for attempt in range(max(1, max_retries) - 1):
        try:
            return operation()
        except Exception as e:
            if not is_retryable(e):
                raise
            delay = base_delay * (2 ** attempt)
            logger.debug("Retrying after %s (attempt %d, %.2fs)", e, attempt + 1, delay)
            if delay > 0:
                time.sleep(delay)
    return operation()


def clean_db_error(error: object) -> str:
    """Map a storage error to a short message suitable for display."""
    message = str(error).lower()

    if "constraint" in message or "unique" in message:
        return "Data conflict - please refresh and try again"
    if "foreign key" in message:
        return "Data integrity error - please refresh and try again"
    if "not found" in message:
        return "Item not found - it may have been deleted"
    if "quota" in message or "storage" in message or "disk" in message:
        return "Storage limit reached - please clear some data"
    return "Database error - please try again"
