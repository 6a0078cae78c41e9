"""Stream a single CDN asset back to the client.

The upstream response is never buffered in full; chunks are relayed as they
arrive and the aiohttp session is closed once streaming finishes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import AsyncIterator

import aiohttp
import structlog

from src.config import settings
from src.resolver.base import MediaType
from src.resolver.errors import InvalidUrlError, UpstreamDownloadError
from src.utils.formatters import extension_for, sanitize_filename
from src.utils.url_validator import is_allowed_media_url

logger = structlog.get_logger()

_CHUNK_SIZE = 64 * 1024


@dataclass
class MediaStream:
    """An open upstream response plus the session that owns it."""

    src: str
    content_type: str
    content_length: int | None
    response: aiohttp.ClientResponse
    session: aiohttp.ClientSession
    _closed: bool = False

    async def iter_chunks(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self.response.content.iter_chunked(_CHUNK_SIZE):
                yield chunk
        except (aiohttp.ClientError, TimeoutError) as exc:
            # headers are already sent; all we can do is log and cut the stream
            logger.error("media_stream_interrupted", url=self.src, error=str(exc))
        finally:
            await self.close()

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self.response.release()
        await self.session.close()


def attachment_filename(
    name: str | None, media_type: MediaType, content_type: str | None
) -> str:
    """``<sanitized name>.<ext>`` for the Content-Disposition header."""
    base = sanitize_filename(
        name, fallback=f"{settings.platform_name.lower()}_{media_type}"
    )
    ext = extension_for(content_type, is_video=media_type == MediaType.VIDEO)
    return f"{base}.{ext}"


async def open_media_stream(
    src: str,
    cdn_hosts: list[str] | None = None,
    session: aiohttp.ClientSession | None = None,
) -> MediaStream:
    """Open a streaming GET for *src* after checking it against the CDN allow-list.

    Raises `InvalidUrlError` for off-list sources and `UpstreamDownloadError`
    when the upstream request fails or answers with a non-2xx status.
    """
    cdn_hosts = cdn_hosts if cdn_hosts is not None else settings.cdn_hosts
    if not is_allowed_media_url(src, cdn_hosts):
        raise InvalidUrlError("Source is not an allowed media URL")

    if session is None:
        session = aiohttp.ClientSession()

    try:
        resp = await session.get(
            src,
            headers={"User-Agent": settings.user_agent},
            timeout=aiohttp.ClientTimeout(
                total=None,
                sock_connect=settings.download_timeout_seconds,
                sock_read=settings.download_timeout_seconds,
            ),
        )
        resp.raise_for_status()
    except (aiohttp.ClientError, TimeoutError) as exc:
        logger.error("media_download_failed", url=src, error=str(exc))
        await session.close()
        raise UpstreamDownloadError("Failed to fetch media from upstream") from exc

    return MediaStream(
        src=src,
        content_type=resp.headers.get("Content-Type", "application/octet-stream"),
        content_length=resp.content_length,
        response=resp,
        session=session,
    )
