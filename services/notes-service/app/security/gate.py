"""Request gate applying the rate limiter to mutating routes."""

from __future__ import annotations

import logging
from typing import Any, Callable, Coroutine, Protocol

from fastapi import Request, Response
from fastapi.routing import APIRoute
from starlette.concurrency import run_in_threadpool

from ..errors import RateLimitExceeded

logger = logging.getLogger(__name__)


class RateLimiter(Protocol):
    def allow(self, identity: str) -> bool: ...


class RequestGate:
    """Translate limiter decisions for inbound requests into admit/reject outcomes."""

    def __init__(self, limiter: RateLimiter, *, identity_header: str | None = None) -> None:
        self._limiter = limiter
        self._identity_header = identity_header

    @property
    def limiter(self) -> RateLimiter:
        return self._limiter

    def identify(self, request: Request) -> str:
        """Return the caller identity, or an empty string when none can be resolved.

        With an identity header configured, the first address listed in it wins;
        otherwise (or when the header is missing) the socket peer address is used.
        """
        if self._identity_header:
            forwarded = request.headers.get(self._identity_header, "")
            candidate = forwarded.split(",")[0].strip()
            if candidate:
                return candidate
        if request.client is None:
            return ""
        return request.client.host or ""

    def check(self, request: Request) -> None:
        """Raise :class:`RateLimitExceeded` unless the limiter admits this request."""
        identity = self.identify(request)
        if not self._limiter.allow(identity):
            logger.debug("gate rejected %s %s from %r", request.method, request.url.path, identity)
            raise RateLimitExceeded()


class GatedRoute(APIRoute):
    """Route class that consults the application's request gate before anything else.

    The gate runs ahead of body parsing, validation and dependency resolution,
    so a rejected request never reaches the endpoint or the note store.
    """

    def get_route_handler(self) -> Callable[[Request], Coroutine[Any, Any, Response]]:
        route_handler = super().get_route_handler()

        async def gated_route_handler(request: Request) -> Response:
            gate: RequestGate = request.app.state.request_gate
            await run_in_threadpool(gate.check, request)
            return await route_handler(request)

        return gated_route_handler
