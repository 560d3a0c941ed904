"""Retry helpers with exponential backoff."""

import functools
import logging
import random
import time
from typing import Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)


def _retry_after_seconds(exc: Exception) -> Optional[float]:
    """Return the Retry-After delay of an HTTP 429 response, if any."""
    response = getattr(exc, "response", None)
    if response is None or getattr(response, "status_code", None) != 429:
        return None
    header = response.headers.get("Retry-After") if response.headers else None
    if not header:
        return None
    try:
        return max(0.0, float(header))
    except (TypeError, ValueError):
        return None


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    sleep: Callable[[float], None] = time.sleep,
):
    """Retry the decorated function on the given exceptions.

    The delay doubles on every attempt (with a little jitter) and is capped at
    ``max_delay``. A 429 response carrying ``Retry-After`` overrides the
    computed delay. The last exception is re-raised once retries run out.
    """

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_retries:
                        logger.error(f"{func.__name__} failed after {attempt + 1} attempts: {e}")
                        raise

                    delay = _retry_after_seconds(e)
                    if delay is None:
                        delay = base_delay * (2 ** attempt) + random.uniform(0, base_delay / 2)
                    delay = min(delay, max_delay)

                    logger.warning(
                        f"{func.__name__} attempt {attempt + 1}/{max_retries + 1} failed: {e}. "
                        f"Retrying in {delay:.1f}s"
                    )
                    sleep(delay)

        return wrapper

    return decorator
