"""
In-memory Rate Limiter

Fixed-window counter keyed by caller IP. State lives in process memory
and is lost on restart; with several instances the limit is approximate.
Swap in a shared counter store behind the same `is_rate_limited` call
for multi-instance deployments.
"""

import time
from typing import Dict, Tuple, Callable

from .constants import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS


class RateLimiter:
    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: int = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # key -> (request count, window expiry)
        self._windows: Dict[str, Tuple[int, float]] = {}

    def is_rate_limited(self, key: str) -> bool:
        """Count a request for `key` and report whether it exceeds the limit."""
        now = self._clock()
        count, expires_at = self._windows.get(key, (0, 0.0))

        if now >= expires_at:
            self._windows[key] = (1, now + self.window_seconds)
            self._evict_expired(now)
            return False

        if count >= self.max_requests:
            return True

        self._windows[key] = (count + 1, expires_at)
        return False

    def reset(self) -> None:
        self._windows.clear()

    def _evict_expired(self, now: float) -> None:
        expired = [k for k, (_, exp) in self._windows.items() if exp <= now]
        for k in expired:
            del self._windows[k]


# Singleton instance
rate_limiter = RateLimiter()
