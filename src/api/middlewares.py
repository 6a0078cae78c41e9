from __future__ import annotations

import time
from typing import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

logger = structlog.get_logger()


def _client_id(request: Request, trusted_proxy_count: int = 0) -> str:
    """Caller address. X-Forwarded-For is read only behind trusted proxies.

    Each trusted proxy appends the address it saw, so the real client is the
    entry `trusted_proxy_count` places from the right; anything further left
    is client-supplied.
    """
    if trusted_proxy_count > 0:
        forwarded = request.headers.get("X-Forwarded-For", "")
        hops = [h.strip() for h in forwarded.split(",") if h.strip()]
        if len(hops) >= trusted_proxy_count:
            return hops[-trusted_proxy_count]
    return request.client.host if request.client else "unknown"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Log every request with structured context."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.monotonic()
        status_code = 500
        structlog.contextvars.bind_contextvars(
            method=request.method, path=request.url.path
        )
        logger.debug("request_received", client=_client_id(request))
        try:
            response = await call_next(request)
            status_code = response.status_code
            return response
        finally:
            duration_ms = int((time.monotonic() - start) * 1000)
            logger.info("request_handled", status=status_code, duration_ms=duration_ms)
            structlog.contextvars.unbind_contextvars("method", "path")


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Simple per-client sliding-window rate limiter for ``/api`` routes.

    Allows `max_requests` per `window_seconds`. Excess requests get a 429.
    Clients idle for a whole window are forgotten.
    """

    def __init__(
        self,
        app: ASGIApp,
        max_requests: int = 20,
        window_seconds: int = 60,
        trusted_proxy_count: int = 0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        super().__init__(app)
        self._max = max_requests
        self._window = window_seconds
        self._trusted_proxy_count = trusted_proxy_count
        self._clock = clock
        self._requests: dict[str, list[float]] = {}
        self._last_sweep = clock()

    def _sweep(self, now: float) -> None:
        for client in list(self._requests):
            recent = [t for t in self._requests[client] if now - t < self._window]
            if recent:
                self._requests[client] = recent
            else:
                del self._requests[client]
        self._last_sweep = now

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not request.url.path.startswith("/api/"):
            return await call_next(request)

        client = _client_id(request, self._trusted_proxy_count)
        now = self._clock()

        if now - self._last_sweep >= self._window:
            self._sweep(now)

        # Prune old entries
        recent = [t for t in self._requests.get(client, []) if now - t < self._window]

        if len(recent) >= self._max:
            self._requests[client] = recent
            logger.warning("rate_limited", client=client, path=request.url.path)
            return JSONResponse(
                {"error": "Too many requests, slow down"},
                status_code=429,
                headers={"Retry-After": str(self._window)},
            )

        recent.append(now)
        self._requests[client] = recent
        return await call_next(request)
