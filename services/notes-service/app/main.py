"""FastAPI application wiring for the notes service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

import redis
from fastapi import FastAPI, Response
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from psycopg_pool import ConnectionPool
from redis.exceptions import RedisError

from .api.routes import read_router, router as v1_router
from .config import Settings, get_settings
from .domain.service import NoteService
from .errors import install_error_handlers
from .repository import NoteRepository
from .security.gate import RequestGate
from .security.rate_limiter import FixedWindowRateLimiter
from .security.redis_rate_limiter import RedisFixedWindowRateLimiter

logger = logging.getLogger(__name__)


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once for the process."""
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def build_redis_client(settings: Settings) -> redis.Redis:
    """Create the shared Redis client with per-call deadlines applied."""
    client = redis.Redis.from_url(
        settings.redis_url,
        socket_timeout=settings.request_timeout_seconds,
        socket_connect_timeout=settings.request_timeout_seconds,
    )
    try:
        # surface misconfiguration early; requests still fail per the limiter's fail mode
        client.ping()
    except RedisError as exc:
        logger.warning("redis at %s is not reachable yet: %s", settings.redis_url, exc)
    return client


def build_rate_limiter(
    settings: Settings, client: redis.Redis | None = None
) -> FixedWindowRateLimiter | RedisFixedWindowRateLimiter:
    """Instantiate the configured rate limiter backend."""
    if settings.rate_limit_backend == "memory":
        logger.info("rate limiter using in-memory backend")
        return FixedWindowRateLimiter(
            max_requests=settings.rate_limit_requests,
            window_seconds=settings.rate_limit_window_seconds,
        )
    if settings.rate_limit_backend != "redis":
        raise ValueError(f"unknown RATE_LIMIT_BACKEND {settings.rate_limit_backend!r}")
    if client is None:
        client = build_redis_client(settings)
    logger.info(
        "rate limiter configured for redis backend at %s (%s requests / %ss, fail %s)",
        settings.redis_url,
        settings.rate_limit_requests,
        settings.rate_limit_window_seconds,
        settings.rate_limit_fail_mode,
    )
    return RedisFixedWindowRateLimiter(
        client,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        namespace=settings.rate_limit_namespace,
        fail_open=settings.rate_limit_fail_open,
    )


def build_pool(settings: Settings) -> ConnectionPool:
    """Create the Postgres pool with checkout and statement deadlines applied."""
    timeout_ms = int(settings.request_timeout_seconds * 1000)
    return ConnectionPool(
        settings.database_url,
        open=False,
        timeout=settings.request_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={timeout_ms}"},
    )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the FastAPI application; shared resources are created in its lifespan."""
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Initialise shared resources (Redis, Postgres pool, services) for the app lifecycle."""
        redis_client = None
        pool = None
        try:
            if settings.rate_limit_backend == "redis":
                redis_client = build_redis_client(settings)
            limiter = build_rate_limiter(settings, redis_client)
            pool = build_pool(settings)
            pool.open()
            repository = NoteRepository(pool)
            repository.ensure_schema()
            app.state.pool = pool
            app.state.note_service = NoteService(repository)
            app.state.request_gate = RequestGate(
                limiter, identity_header=settings.rate_limit_identity_header
            )
            yield
        finally:
            if pool is not None:
                pool.close()
            if redis_client is not None:
                redis_client.close()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_allow_origins),
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )
    install_error_handlers(app)

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        """Return a minimal readiness indicator used by orchestration systems."""
        return {"status": "ok"}

    @app.get("/metrics", include_in_schema=False)
    def metrics() -> Response:
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    app.include_router(v1_router)
    app.include_router(read_router)
    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    _settings = get_settings()
    uvicorn.run(app, host=_settings.http_host, port=_settings.http_port)
