import threading
import time
from functools import wraps

from utils.logging_config import get_logger

logger = get_logger("rate_limit")


class RateLimiter:
    """Minimum spacing between calls to one API, shared by every thread"""

    def __init__(self, name: str, min_interval: float):
        self.name = name
        self.min_interval = min_interval
        self._last_call = 0.0
        self._lock = threading.Lock()

    def wait(self):
        with self._lock:
            elapsed = time.monotonic() - self._last_call
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_call = time.monotonic()


def is_rate_limit_error(error: Exception) -> bool:
    message = str(error).lower()
    return "rate limit" in message or "429" in message


def rate_limited(limiter: RateLimiter, backoff: float = 0.0):
    """Decorator enforcing ``limiter`` spacing; sleeps ``backoff`` after a 429 before re-raising"""
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            limiter.wait()
            try:
                return func(*args, **kwargs)
            except Exception as e:
                if backoff and is_rate_limit_error(e):
                    logger.warning(f"{limiter.name} rate limit hit, backing off {backoff}s: {e}")
                    time.sleep(backoff)
                raise
        return wrapper
    return decorator
