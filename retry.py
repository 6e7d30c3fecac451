"""
Retry helper for record-store calls.

Sheet reads and writes occasionally fail with rate limiting (HTTP 429),
server errors or dropped connections. Those are retried a few times with a
linearly growing delay; anything else propagates on the first failure.
"""

import functools
import logging
import time
from typing import Callable, Optional

import requests
from gspread.exceptions import APIError

from config import RETRY_ATTEMPTS, RETRY_DELAY

log = logging.getLogger(__name__)

RETRYABLE_STATUS = {408, 429, 500, 502, 503, 504}


def status_of(exc: Exception) -> Optional[int]:
    response = getattr(exc, "response", None)
    return getattr(response, "status_code", None)


def is_transient(exc: Exception) -> bool:
    """True for rate limiting, 5xx responses, timeouts and dropped connections."""
    if isinstance(exc, (requests.ConnectionError, requests.Timeout)):
        return True
    if isinstance(exc, APIError):
        return status_of(exc) in RETRYABLE_STATUS
    return False


def with_retry(
    label: str,
    attempts: int = RETRY_ATTEMPTS,
    delay: float = RETRY_DELAY,
    sleep: Callable[[float], None] = time.sleep,
):
    """
    Decorator retrying transient failures.

    The n-th retry waits ``delay * n`` seconds. After ``attempts`` tries, or on
    the first non-transient error, the original exception is re-raised.

    Example:
        @with_retry("Select MentorMeta")
        def load():
            return worksheet.get_all_records()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(1, attempts + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if attempt < attempts and is_transient(e):
                        wait = delay * attempt
                        log.warning("%s failed (attempt %d/%d), retrying in %.1fs: %s",
                                    label, attempt, attempts, wait, e)
                        sleep(wait)
                        continue
                    log.error("%s failed: %s", label, e)
                    raise
        return wrapper
    return decorator
