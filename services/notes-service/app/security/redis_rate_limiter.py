"""Redis-backed fixed window rate limiter."""

from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError

from ..metrics import RATE_LIMIT_DECISIONS

logger = logging.getLogger(__name__)


class RedisFixedWindowRateLimiter:
    """Distributed fixed window limiter shared by every process using the same Redis.

    Each identity owns a single counter key. The first increment in a window
    creates the key and attaches the window as its TTL; later increments leave
    the TTL alone, so the window is anchored at the first request and the key
    disappears (restarting the count) once it expires.

    Parameters
    ----------
    client:
        Redis connection handle. It is shared by all concurrent callers.
    max_requests:
        Number of calls admitted per identity within one window.
    window_seconds:
        Lifetime of a counter key, measured from its creation.
    namespace, scope:
        Leading components of the counter key, ``<namespace>:<scope>:<identity>``.
    fail_open:
        Admit requests when Redis fails. By default such requests are denied.
    """

    def __init__(
        self,
        client: Redis,
        *,
        max_requests: int,
        window_seconds: float,
        namespace: str = "rate_limit",
        scope: str = "ip",
        fail_open: bool = False,
    ) -> None:
        if max_requests < 1:
            raise ValueError("max_requests must be at least 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self._client = client
        self._max_requests = max_requests
        self._window_seconds = window_seconds
        self._window_ms = max(1, int(window_seconds * 1000))
        self._key_prefix = f"{namespace}:{scope}"
        self._fail_open = fail_open

    @property
    def max_requests(self) -> int:
        return self._max_requests

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def fail_open(self) -> bool:
        return self._fail_open

    def key_for(self, identity: str) -> str:
        """Return the Redis key holding the counter for ``identity``."""
        return f"{self._key_prefix}:{identity}"

    def allow(self, identity: str) -> bool:
        """Return ``True`` when ``identity`` is still within its budget for the current window."""
        if not identity:
            logger.debug("rejecting request without a client identity")
            RATE_LIMIT_DECISIONS.labels(backend="redis", outcome="no_identity").inc()
            return False

        key = self.key_for(identity)
        try:
            with self._client.pipeline(transaction=True) as pipe:
                pipe.incr(key)
                # NX keeps the TTL from the first request, making the window fixed
                pipe.pexpire(key, self._window_ms, nx=True)
                count, _ = pipe.execute()
        except RedisError as exc:
            logger.warning(
                "rate limiter backend error for key %s, %s request: %s",
                key,
                "admitting" if self._fail_open else "rejecting",
                exc,
            )
            RATE_LIMIT_DECISIONS.labels(backend="redis", outcome="backend_error").inc()
            return self._fail_open

        if int(count) > self._max_requests:
            logger.info("rate limit exceeded for %s (%s/%s)", key, count, self._max_requests)
            RATE_LIMIT_DECISIONS.labels(backend="redis", outcome="rejected").inc()
            return False
        RATE_LIMIT_DECISIONS.labels(backend="redis", outcome="allowed").inc()
        return True
