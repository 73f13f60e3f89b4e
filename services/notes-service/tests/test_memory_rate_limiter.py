"""Tests for the in-process fixed window rate limiter."""

from __future__ import annotations

import pytest

from app.security.rate_limiter import FixedWindowRateLimiter


class FakeClock:
    def __init__(self) -> None:
        self.now = 1_000.0

    def __call__(self) -> float:
        return self.now


def test_allows_threshold_then_rejects():
    limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60, clock=FakeClock())
    assert [limiter.allow("1.2.3.4") for _ in range(4)] == [True, True, True, False]


def test_window_is_anchored_at_first_request():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=2, window_seconds=60, clock=clock)
    assert limiter.allow("1.2.3.4")
    clock.now += 50
    assert limiter.allow("1.2.3.4")
    assert not limiter.allow("1.2.3.4")

    # 60s after the first request the bucket expires, regardless of later calls
    clock.now += 10
    assert limiter.allow("1.2.3.4")
    assert limiter.allow("1.2.3.4")
    assert not limiter.allow("1.2.3.4")


def test_empty_identity_is_rejected():
    limiter = FixedWindowRateLimiter(max_requests=3, window_seconds=60)
    assert not limiter.allow("")


def test_identities_are_independent():
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=FakeClock())
    assert limiter.allow("10.0.0.1")
    assert not limiter.allow("10.0.0.1")
    assert limiter.allow("10.0.0.2")


@pytest.mark.parametrize(("max_requests", "window_seconds"), [(0, 60), (1, 0)])
def test_invalid_configuration_is_refused(max_requests, window_seconds):
    with pytest.raises(ValueError):
        FixedWindowRateLimiter(max_requests=max_requests, window_seconds=window_seconds)


def test_stale_identities_are_swept_once_per_window():
    clock = FakeClock()
    limiter = FixedWindowRateLimiter(max_requests=1, window_seconds=60, clock=clock)
    assert limiter.allow("10.0.0.1")

    clock.now += 30
    assert limiter.allow("10.0.0.2")
    assert "10.0.0.1" in limiter._buckets

    clock.now += 31
    assert limiter.allow("10.0.0.2") is False
    assert "10.0.0.1" not in limiter._buckets
    assert "10.0.0.2" in limiter._buckets
