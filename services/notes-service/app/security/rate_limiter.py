"""In-memory fixed window rate limiter implementation."""

from __future__ import annotations

import time
from threading import Lock
from typing import Callable

from ..metrics import RATE_LIMIT_DECISIONS


class FixedWindowRateLimiter:
    """Thread-safe fixed window rate limiter for single-process deployments.

    Mirrors :class:`~app.security.redis_rate_limiter.RedisFixedWindowRateLimiter`:
    a bucket is created on first use with an expiry one window ahead, and the
    count restarts once that expiry has passed.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialise limiter parameters and per-identity storage."""
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        # identity -> (expires_at, count)
        self._buckets: dict[str, tuple[float, int]] = {}
        self._next_sweep = clock() + window_seconds
        self._lock = Lock()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window

    def allow(self, identity: str) -> bool:
        """Return ``True`` when the request is within the configured rate limit."""
        if not identity:
            RATE_LIMIT_DECISIONS.labels(backend="memory", outcome="no_identity").inc()
            return False
        now = self._clock()
        with self._lock:
            # stale identities are dropped at most once per window
            if now >= self._next_sweep:
                self._evict_expired(now)
                self._next_sweep = now + self._window
            expires_at, count = self._buckets.get(identity, (now + self._window, 0))
            if expires_at <= now:
                expires_at, count = now + self._window, 0
            count += 1
            self._buckets[identity] = (expires_at, count)
        allowed = count <= self._max_requests
        RATE_LIMIT_DECISIONS.labels(
            backend="memory", outcome="allowed" if allowed else "rejected"
        ).inc()
        return allowed

    def _evict_expired(self, now: float) -> None:
        expired = [key for key, (expires_at, _) in self._buckets.items() if expires_at <= now]
        for key in expired:
            del self._buckets[key]
