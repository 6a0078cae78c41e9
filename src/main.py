from __future__ import annotations

import asyncio
import logging
import sys

import structlog
import uvicorn

from src.api.app import create_app
from src.config import settings


def configure_logging() -> None:
    """Set up structlog with JSON rendering for production, pretty for dev."""
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer()
            if sys.stderr.isatty()
            else structlog.processors.JSONRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            getattr(logging, settings.log_level.upper(), logging.INFO)
        ),
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


async def main() -> None:
    configure_logging()
    log = structlog.get_logger()

    log.info("starting_server", host=settings.host, port=settings.port, log_level=settings.log_level)

    app = create_app()
    server = uvicorn.Server(
        uvicorn.Config(
            app,
            host=settings.host,
            port=settings.port,
            log_level=settings.log_level.lower(),
            access_log=False,
        )
    )
    await server.serve()


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
