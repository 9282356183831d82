"""Fixed-window request rate limiter."""
import logging
import time
from dataclasses import dataclass
from threading import Lock

logger = logging.getLogger(__name__)


@dataclass
class RateLimitDecision:
    allowed: bool
    remaining: int
    retry_after: int


class FixedWindowRateLimiter:
    """Count requests per key inside fixed time windows.

    State lives in process memory, so limits apply per worker. The table is
    pruned of expired windows whenever it grows past ``max_keys``.
    """

    def __init__(self, max_keys=10000, clock=time.monotonic):
        self.max_keys = max_keys
        self._clock = clock
        self._windows = {}
        self._lock = Lock()

    def hit(self, key, max_requests, window_seconds):
        """Record one request for ``key`` and decide whether it is allowed."""
        current = self._clock()
        with self._lock:
            count, reset_at = self._windows.get(key, (0, current + window_seconds))
            if current >= reset_at:
                count, reset_at = 0, current + window_seconds
            count += 1
            self._windows[key] = (count, reset_at)
            if len(self._windows) > self.max_keys:
                self._prune(current)

        retry_after = max(1, int(reset_at - current + 0.999))
        if count > max_requests:
            logger.warning(f"Rate limit exceeded for {key}: {count}/{max_requests} in {window_seconds}s")
            return RateLimitDecision(False, 0, retry_after)
        return RateLimitDecision(True, max_requests - count, retry_after)

    def reset(self):
        with self._lock:
            self._windows.clear()

    def _prune(self, current):
        expired = [key for key, (_, reset_at) in self._windows.items() if current >= reset_at]
        for key in expired:
            del self._windows[key]
