from __future__ import annotations

import asyncio
import time
from typing import Callable

import structlog

from src.config import settings
from src.resolver.base import PageAccessor, ResolutionResult
from src.resolver.errors import FetchFailedError, NoMediaError
from src.resolver.extractor import extract
from src.utils.opengraph import build_signals
from src.utils.url_validator import normalize_url

logger = structlog.get_logger()

AccessorFactory = Callable[[], PageAccessor]

# Extra time the outer bound allows on top of the accessor's own timeout
_TIMEOUT_GRACE_SECONDS = 5.0


def _dbg(event: str, **kwargs: object) -> None:
    """Log at info level when debug_mode is on, otherwise debug."""
    if settings.debug_mode:
        logger.info(event, **kwargs)
    else:
        logger.debug(event, **kwargs)


def default_accessor_factory() -> PageAccessor:
    from src.utils.browser import PlaywrightPageAccessor

    return PlaywrightPageAccessor()


class MediaResolver:
    """Validate a post URL, render it once and extract its media.

    A fresh accessor is created for every call and closed on every exit
    path. There are no retries; callers decide whether to try again.
    """

    def __init__(
        self,
        accessor_factory: AccessorFactory = default_accessor_factory,
        *,
        navigation_timeout: float | None = None,
        cdn_hosts: list[str] | None = None,
        platform_domain: str | None = None,
        platform_name: str | None = None,
    ) -> None:
        self._accessor_factory = accessor_factory
        self._timeout = navigation_timeout or settings.navigation_timeout_seconds
        self._cdn_hosts = cdn_hosts if cdn_hosts is not None else settings.cdn_hosts
        self._domain = platform_domain or settings.platform_domain
        self._platform_name = platform_name or settings.platform_name

    @property
    def request_headers(self) -> dict[str, str]:
        return {
            "User-Agent": settings.user_agent,
            "Accept-Language": settings.accept_language,
        }

    async def resolve(self, url: str) -> ResolutionResult:
        target = normalize_url(url, self._domain)
        _dbg("resolve_start", url=target)

        start = time.monotonic()
        accessor = self._accessor_factory()
        try:
            try:
                snapshot = await asyncio.wait_for(
                    accessor.navigate(target, self.request_headers, self._timeout),
                    timeout=self._timeout + _TIMEOUT_GRACE_SECONDS,
                )
            except asyncio.TimeoutError as exc:
                logger.warning("navigation_timed_out", url=target, timeout=self._timeout)
                raise FetchFailedError(f"Timed out loading page: {target}") from exc

            _dbg("page_loaded", url=target, final_url=snapshot.final_url)
            result = extract(
                build_signals(snapshot),
                source_url=target,
                cdn_hosts=self._cdn_hosts,
                platform_name=self._platform_name,
            )
        finally:
            await accessor.close()

        duration_ms = int((time.monotonic() - start) * 1000)
        if not result.ok:
            logger.info("no_media_found", url=target, duration_ms=duration_ms)
            raise NoMediaError("No media found for this post")

        logger.info(
            "media_resolved",
            url=target,
            shortcode=result.shortcode,
            media_count=result.count,
            duration_ms=duration_ms,
        )
        return result
