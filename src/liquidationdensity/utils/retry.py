"""Simple retry logic for upstream HTTP calls (KISS approach)."""

import logging
import time
from typing import Callable, TypeVar

T = TypeVar("T")
logger = logging.getLogger(__name__)


def retry_on_error(
    func: Callable[[], T],
    max_attempts: int = 3,
    backoff_seconds: float = 1.0,
    retry_on: tuple[type[BaseException], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Retry a function on error with exponential backoff.

    Only exceptions listed in ``retry_on`` are retried; anything else
    propagates immediately.

    Args:
        func: Function to retry (zero-argument callable)
        max_attempts: Maximum number of attempts (default: 3)
        backoff_seconds: Initial backoff time in seconds (default: 1.0)
        retry_on: Exception types that trigger a retry
        sleep: Sleep function (injectable for tests)

    Returns:
        Result of successful function call

    Raises:
        Last exception if all attempts fail

    Example:
        >>> data = retry_on_error(lambda: client.get("/liquidation-map"))
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be >= 1, got {max_attempts}")

    last_exception: BaseException | None = None

    for attempt in range(max_attempts):
        try:
            return func()
        except retry_on as e:
            last_exception = e
            if attempt < max_attempts - 1:
                sleep_time = backoff_seconds * (2**attempt)  # 1s, 2s, 4s
                logger.warning(
                    f"Attempt {attempt + 1}/{max_attempts} failed: {e}. Retrying in {sleep_time}s..."
                )
                sleep(sleep_time)
            else:
                logger.error(f"All {max_attempts} attempts failed. Last error: {e}")

    raise last_exception
