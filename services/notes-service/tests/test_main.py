from __future__ import annotations

from unittest.mock import MagicMock

import fakeredis
import pytest
import redis
from fastapi.testclient import TestClient

from app import main
from app.config import Settings
from app.errors import StorageError
from app.main import build_pool, build_rate_limiter, build_redis_client, create_app
from app.security.rate_limiter import FixedWindowRateLimiter
from app.security.redis_rate_limiter import RedisFixedWindowRateLimiter


def test_memory_backend_builds_in_process_limiter():
    settings = Settings(rate_limit_backend="memory", rate_limit_requests=7, rate_limit_window_seconds=30)
    limiter = build_rate_limiter(settings)
    assert isinstance(limiter, FixedWindowRateLimiter)
    assert limiter.max_requests == 7
    assert limiter.window_seconds == 30


def test_redis_backend_uses_configured_limits_and_fail_mode():
    settings = Settings(
        rate_limit_backend="redis",
        rate_limit_requests=5,
        rate_limit_window_seconds=60,
        rate_limit_fail_mode="open",
        rate_limit_namespace="notes",
    )
    limiter = build_rate_limiter(settings, fakeredis.FakeStrictRedis())
    assert isinstance(limiter, RedisFixedWindowRateLimiter)
    assert limiter.max_requests == 5
    assert limiter.window_seconds == 60
    assert limiter.fail_open
    assert limiter.key_for("1.2.3.4") == "notes:ip:1.2.3.4"


def test_fail_mode_defaults_to_closed():
    settings = Settings(rate_limit_backend="redis", rate_limit_fail_mode="closed")
    assert not build_rate_limiter(settings, fakeredis.FakeStrictRedis()).fail_open


def test_unknown_fail_mode_is_refused():
    with pytest.raises(ValueError):
        Settings(rate_limit_fail_mode="sometimes").rate_limit_fail_open


def test_unknown_backend_is_refused():
    with pytest.raises(ValueError):
        build_rate_limiter(Settings(rate_limit_backend="memcached"))


def test_health_and_metrics_endpoints():
    # no lifespan: neither Redis nor Postgres is contacted
    client = TestClient(create_app(Settings(rate_limit_backend="memory")))

    assert client.get("/healthz").json() == {"status": "ok"}
    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "notes_rate_limit_decisions_total" in metrics.text


def test_redis_client_applies_request_deadline(monkeypatch):
    monkeypatch.setattr(redis.Redis, "ping", lambda self, **kwargs: True)
    client = build_redis_client(
        Settings(redis_url="redis://localhost:6379/0", request_timeout_seconds=2)
    )

    kwargs = client.connection_pool.connection_kwargs
    assert kwargs["socket_timeout"] == 2
    assert kwargs["socket_connect_timeout"] == 2


def test_pool_applies_checkout_and_statement_deadlines():
    pool = build_pool(Settings(request_timeout_seconds=2))

    assert pool.timeout == 2
    assert "statement_timeout=2000" in pool.kwargs["options"]


def test_startup_failure_releases_the_pool(monkeypatch):
    pool = MagicMock()
    monkeypatch.setattr(main, "build_pool", lambda settings: pool)

    def failing_schema(self):
        raise StorageError()

    monkeypatch.setattr(main.NoteRepository, "ensure_schema", failing_schema)
    app = create_app(Settings(rate_limit_backend="memory"))

    with pytest.raises(StorageError):
        with TestClient(app):
            pass

    pool.open.assert_called_once()
    pool.close.assert_called_once()
