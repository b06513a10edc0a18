"""
Bounded retry with exponential backoff for dashboard data loads.
Delay before retry n (0-based) is base_delay * 2**n: 1s, 2s, 4s with the defaults.
"""

import logging
import time
from typing import Callable, TypeVar

from api.config import RETRY_BASE_DELAY, RETRY_MAX_ATTEMPTS

logger = logging.getLogger(__name__)

T = TypeVar("T")


def backoff_delay(attempt: int, base_delay: float = RETRY_BASE_DELAY) -> float:
    return base_delay * (2 ** attempt)


def with_retries(
    fn: Callable[[], T],
    *,
    max_retries: int = RETRY_MAX_ATTEMPTS,
    base_delay: float = RETRY_BASE_DELAY,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] | None = None,
    on_retry: Callable[[int, BaseException], None] | None = None,
    label: str = "",
) -> T:
    """
    Call fn(); on failure retry up to max_retries more times with exponential backoff.

    Args:
        fn: No-arg callable to run.
        max_retries: Retries after the first call (total calls <= max_retries + 1).
        base_delay: Seconds before the first retry; doubles on each retry.
        retry_on: Exception types worth retrying. Anything else propagates at once.
        sleep: Wait function; time.sleep when None.
        on_retry: Called with (retry number starting at 1, error) before each wait.
        label: Name used in log lines.

    Returns:
        Whatever fn() returns on the first success.

    Raises:
        The last error once retries are exhausted.
    """
    attempt = 0
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= max_retries:
                logger.error("retry exhausted label=%s attempts=%s error=%s", label, attempt + 1, e)
                raise
            delay = backoff_delay(attempt, base_delay)
            logger.warning(
                "retrying label=%s attempt=%s/%s delay=%.1fs error=%s",
                label,
                attempt + 1,
                max_retries,
                delay,
                e,
            )
            if on_retry is not None:
                on_retry(attempt + 1, e)
            (sleep or time.sleep)(delay)
            attempt += 1
