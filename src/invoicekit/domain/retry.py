"""Bounded retry for optimistic (compare-and-set) writes."""

import logging
import time
from typing import Callable, TypeVar

from invoicekit.domain.errors import ConcurrentModificationConflict, retries_exhausted
from invoicekit.domain.settings import CoreSettings

logger = logging.getLogger(__name__)

T = TypeVar("T")


class StaleWrite(Exception):
    """Raised inside an attempt when a compare-and-set lost a race."""


def retry_on_conflict(
    operation: Callable[[], T],
    *,
    what: str,
    settings: CoreSettings,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``operation`` until it stops raising StaleWrite.

    Each attempt re-reads its inputs, so a retry always works on fresh state.
    The delay doubles after every lost race.

    Args:
        operation: Callable performing one read-compute-write attempt
        what: Human readable name of the contended resource (for messages)
        settings: Retry limits
        sleep: Sleep function (injectable for tests)

    Returns:
        Whatever the successful attempt returned

    Raises:
        ConcurrentModificationConflict: If every attempt lost its race
    """
    attempts = settings.max_conflict_retries
    for attempt in range(1, attempts + 1):
        try:
            return operation()
        except StaleWrite:
            if attempt == attempts:
                break
            delay = settings.retry_backoff_seconds * (2 ** (attempt - 1))
            logger.debug("Lost race on %s (attempt %d/%d), retrying in %.3fs", what, attempt, attempts, delay)
            sleep(delay)
    raise ConcurrentModificationConflict(retries_exhausted(what, attempts))
