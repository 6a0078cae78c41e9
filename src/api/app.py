from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from src.api.middlewares import LoggingMiddleware, RateLimitMiddleware
from src.api.routes import router
from src.config import settings
from src.resolver import ResolveError
from src.resolver.orchestrator import MediaResolver

logger = structlog.get_logger()


async def _resolve_error_handler(request: Request, exc: ResolveError) -> JSONResponse:
    logger.info(
        "request_failed",
        error_type=type(exc).__name__,
        status=exc.status_code,
        error=exc.message,
    )
    return JSONResponse({"error": exc.message}, status_code=exc.status_code)


async def _validation_error_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    first = exc.errors()[0] if exc.errors() else {}
    field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
    message = f"Invalid request: {field} {first.get('msg', '')}".strip()
    return JSONResponse({"error": message}, status_code=400)


async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled_error", path=request.url.path, error=str(exc))
    return JSONResponse({"error": "Internal server error"}, status_code=500)


def create_app(resolver: MediaResolver | None = None) -> FastAPI:
    """Build the API application. Tests pass a resolver with a fake accessor."""
    app = FastAPI(
        title="Media Resolver",
        description="Resolve public post URLs into downloadable media.",
    )
    app.state.resolver = resolver or MediaResolver()

    # Starlette runs the last-added middleware first
    app.add_middleware(
        RateLimitMiddleware,
        max_requests=settings.rate_limit_requests,
        window_seconds=settings.rate_limit_window_seconds,
        trusted_proxy_count=settings.trusted_proxy_count,
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
    )
    app.add_middleware(LoggingMiddleware)

    app.add_exception_handler(ResolveError, _resolve_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)

    app.include_router(router)
    return app
