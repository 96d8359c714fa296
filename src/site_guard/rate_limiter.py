# src/site_guard/rate_limiter.py
import logging
import math
import time
from typing import Callable, Dict, Optional

from pydantic import BaseModel

logger = logging.getLogger(__name__)

MAX_BUCKET_COUNT = 10000
MIN_WINDOW_SECONDS = 1


class RateLimitResult(BaseModel):
    allowed: bool
    remaining: int
    retry_after_seconds: int = 0


class _Bucket:
    __slots__ = ("count", "reset_at")

    def __init__(self, count: int, reset_at: float):
        self.count = count
        self.reset_at = reset_at


class RateLimiter:
    """
    Fixed-window, in-memory request limiter keyed by an arbitrary identifier (usually client IP).

    Each instance owns its own bucket map, so the server and tests can hold isolated limiters.
    Expired buckets are only pruned once the map grows past max_buckets.
    """

    def __init__(self, max_buckets: int = MAX_BUCKET_COUNT, clock: Optional[Callable[[], float]] = None):
        self.max_buckets = max_buckets
        self._clock = clock or time.monotonic
        self._buckets: Dict[str, _Bucket] = {}

    def __len__(self) -> int:
        return len(self._buckets)

    def reset(self) -> None:
        self._buckets.clear()

    def _prune_expired(self, now: float) -> None:
        if len(self._buckets) <= self.max_buckets:
            return
        expired = [key for key, bucket in self._buckets.items() if bucket.reset_at <= now]
        for key in expired:
            del self._buckets[key]
        logger.debug("Pruned %d expired rate-limit buckets.", len(expired))

    def check(self, key: str, limit: float, window_seconds: float) -> RateLimitResult:
        """
        Registers one hit for `key` and reports whether it fits in the current window.
        """
        now = self._clock()
        self._prune_expired(now)

        limit = max(1, math.floor(limit))
        window = max(MIN_WINDOW_SECONDS, math.floor(window_seconds))
        existing = self._buckets.get(key)

        if existing is None or existing.reset_at <= now:
            self._buckets[key] = _Bucket(count=1, reset_at=now + window)
            return RateLimitResult(allowed=True, remaining=limit - 1)

        if existing.count >= limit:
            retry_after = max(1, math.ceil(existing.reset_at - now))
            return RateLimitResult(allowed=False, remaining=0, retry_after_seconds=retry_after)

        existing.count += 1
        return RateLimitResult(allowed=True, remaining=max(0, limit - existing.count))
