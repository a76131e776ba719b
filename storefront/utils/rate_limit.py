"""
Rate limiting utilities for the public API.

Sliding-window, per-key, in-process counters. Three limiters share the
implementation:
- demo issuance: calls to POST /api/demo-access per IP per 24h
- contact form: submissions per IP per window
- general API: every /api/ request per IP per window
"""
import logging
import time
from collections import defaultdict
from threading import Lock
from typing import Callable, Optional, Tuple

from ..core.config import settings

logger = logging.getLogger(__name__)

DAY_SECONDS = 86400


class InMemoryRateLimiter:
    """
    Simple in-memory rate limiter with TTL.

    Thread-safe. Counters are per process and reset on restart.
    """

    def __init__(self, time_func: Callable[[], float] = time.time):
        self._store: dict = defaultdict(list)
        self._lock = Lock()
        self._time = time_func

    def _cleanup(self, key: str, window_seconds: int):
        """Remove expired entries."""
        cutoff = self._time() - window_seconds
        entries = [ts for ts in self._store[key] if ts > cutoff]
        if entries:
            self._store[key] = entries
        else:
            self._store.pop(key, None)

    def check_and_increment(self, key: str, limit: int, window_seconds: int) -> Tuple[bool, int]:
        """
        Check if key is within rate limit and increment counter.

        Returns: (allowed, remaining_count)
        """
        with self._lock:
            self._cleanup(key, window_seconds)
            current_count = len(self._store[key])

            if current_count >= limit:
                return False, 0

            self._store[key].append(self._time())
            return True, limit - current_count - 1

    def get_count(self, key: str, window_seconds: int) -> int:
        """Get current count for key within window."""
        with self._lock:
            self._cleanup(key, window_seconds)
            return len(self._store.get(key, ()))

    def reset(self):
        with self._lock:
            self._store.clear()


class ApiRateLimiter:
    """Named per-IP limits over one InMemoryRateLimiter."""

    def __init__(self, backend: Optional[InMemoryRateLimiter] = None):
        self._memory = backend or InMemoryRateLimiter()

    def check_demo_issue_limit(self, ip: str) -> Tuple[bool, int]:
        return self._memory.check_and_increment(
            f"demo:issue:ip:{ip}", settings.DEMO_ISSUE_LIMIT_PER_DAY, DAY_SECONDS
        )

    def check_contact_limit(self, ip: str) -> Tuple[bool, int]:
        return self._memory.check_and_increment(
            f"contact:ip:{ip}", settings.CONTACT_RATE_LIMIT, settings.CONTACT_RATE_WINDOW_SECONDS
        )

    def check_api_limit(self, ip: str) -> Tuple[bool, int]:
        return self._memory.check_and_increment(
            f"api:ip:{ip}", settings.API_RATE_LIMIT, settings.API_RATE_WINDOW_SECONDS
        )

    def reset(self):
        self._memory.reset()


# Singleton instance
_rate_limiter: Optional[ApiRateLimiter] = None


def get_rate_limiter() -> ApiRateLimiter:
    """Get singleton rate limiter instance."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = ApiRateLimiter()
        logger.info("Rate limiter initialized with in-memory store")
    return _rate_limiter
