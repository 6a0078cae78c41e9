"""Turn raw page signals into a typed, deduplicated media list.

Ordering contract for ``ResolutionResult.media``:
tag video, tag image, markup-scanned videos, markup-scanned images.
Every stage skips URLs already collected by an earlier one.
"""

from __future__ import annotations

import html
import re
from typing import Any
from urllib.parse import urlparse

import structlog

from src.config import settings
from src.resolver.base import MediaItem, MediaType, RawPageSignals, ResolutionResult
from src.utils.formatters import placeholder_title, strip_markup
from src.utils.url_validator import is_allowed_media_url

logger = structlog.get_logger()

VIDEO_EXTENSIONS = ("mp4", "mov", "webm", "m4v")
IMAGE_EXTENSIONS = ("jpg", "jpeg", "png", "webp", "gif", "heic")

# Candidate URLs in page markup; the extension + CDN filter does the real work
_URL_CANDIDATE = re.compile(r"https://[^\s\"'<>()\\]+", re.IGNORECASE)

_SHORTCODE = re.compile(r"/(?:p|reel|reels|tv)/([^/?#]+)")
# At least one letter or digit, so runs of dots never pass as a handle
_HANDLE = r"([A-Za-z0-9_.]*[A-Za-z0-9][A-Za-z0-9_.]*)"


# Only the escapes that show up around URLs. A full html.unescape would turn
# query params such as "&para=" into entity characters.
_URL_ESCAPES = [
    ("\\/", "/"),
    ("\\u0026", "&"),
    ("\\u0025", "%"),
    ("&amp;", "&"),
    ("&quot;", '"'),
    ("&#34;", '"'),
    ("&#39;", "'"),
    ("&#039;", "'"),
    ("&#x2F;", "/"),
]


def _unescape_urls(text: str) -> str:
    """Undo the JSON and HTML escaping that hides CDN URLs inside inline scripts."""
    for escaped, plain in _URL_ESCAPES:
        text = text.replace(escaped, plain)
    return text


def _extension(url: str) -> str:
    path = urlparse(url).path.lower()
    _, dot, ext = path.rpartition(".")
    return ext if dot else ""


def scan_markup(markup: str, cdn_hosts: list[str]) -> tuple[list[str], list[str]]:
    """Find allow-listed video and image URLs in markup, in document order.

    Returns ``(videos, images)``, each internally deduplicated.
    """
    videos: list[str] = []
    images: list[str] = []
    if not markup:
        return videos, images

    for match in _URL_CANDIDATE.finditer(_unescape_urls(markup)):
        url = match.group(0).rstrip(".,;")
        if not is_allowed_media_url(url, cdn_hosts):
            continue
        ext = _extension(url)
        if ext in VIDEO_EXTENSIONS and url not in videos:
            videos.append(url)
        elif ext in IMAGE_EXTENSIONS and url not in images:
            images.append(url)
    return videos, images


def extract_shortcode(*urls: str) -> str | None:
    """Return the post identifier from the first URL whose path has one."""
    for url in urls:
        if not url:
            continue
        match = _SHORTCODE.search(urlparse(url).path)
        if match:
            return match.group(1)
    return None


def _author_from_structured_data(blocks: list[dict[str, Any]]) -> str | None:
    for block in blocks:
        author = block.get("author")
        if isinstance(author, list):
            author = author[0] if author else None
        if not isinstance(author, dict):
            continue
        identifier = author.get("identifier")
        candidates = [
            author.get("alternateName"),
            identifier.get("value") if isinstance(identifier, dict) else None,
        ]
        for candidate in candidates:
            if isinstance(candidate, str) and candidate.strip():
                return candidate.strip().lstrip("@")
    return None


def extract_author(
    description: str | None,
    platform_name: str,
    structured_data: list[dict[str, Any]] | None = None,
) -> str | None:
    """Best-effort author handle. Absence is a normal outcome, never an error."""
    if description:
        pattern = _HANDLE + r"\s+on\s+" + re.escape(platform_name)
        match = re.search(pattern, html.unescape(description), re.IGNORECASE)
        if match:
            return match.group(1)
    if structured_data:
        return _author_from_structured_data(structured_data)
    return None


def _pick_tag_url(candidates: list[str | None], cdn_hosts: list[str]) -> str:
    """First allow-listed candidate, else the first non-empty one."""
    urls = [_unescape_urls(c).strip() for c in candidates if c]
    urls = [u for u in urls if u]
    for url in urls:
        if is_allowed_media_url(url, cdn_hosts):
            return url
    return urls[0] if urls else ""


def extract(
    signals: RawPageSignals,
    *,
    source_url: str = "",
    cdn_hosts: list[str] | None = None,
    platform_name: str | None = None,
) -> ResolutionResult:
    """Build a `ResolutionResult` from one page's signals. Never raises for gaps."""
    cdn_hosts = cdn_hosts if cdn_hosts is not None else settings.cdn_hosts
    platform_name = platform_name or settings.platform_name
    tags = signals.meta_tags

    raw_title = tags.get("og:title")
    raw_description = tags.get("og:description")
    image_url = _unescape_urls(tags.get("og:image") or "").strip()
    video_url = _pick_tag_url(
        [tags.get("og:video"), tags.get("og:video:secure_url")], cdn_hosts
    )

    media: list[MediaItem] = []
    seen: set[str] = set()

    def _add(url: str, media_type: MediaType) -> None:
        if not url or url in seen:
            return
        if not is_allowed_media_url(url, cdn_hosts):
            logger.debug("media_url_rejected", url=url, media_type=media_type)
            return
        seen.add(url)
        media.append(MediaItem(url=url, media_type=media_type))

    _add(video_url, MediaType.VIDEO)
    _add(image_url, MediaType.IMAGE)
    tag_count = len(media)

    scanned_videos, scanned_images = scan_markup(signals.markup, cdn_hosts)
    for url in scanned_videos:
        _add(url, MediaType.VIDEO)
    for url in scanned_images:
        _add(url, MediaType.IMAGE)

    shortcode = extract_shortcode(signals.final_url, source_url)
    author = extract_author(raw_description, platform_name, signals.structured_data)

    title = strip_markup(raw_title) or placeholder_title(platform_name, shortcode)
    description = strip_markup(raw_description)

    logger.debug(
        "media_extracted",
        shortcode=shortcode,
        from_tags=tag_count,
        from_markup=len(media) - tag_count,
    )

    return ResolutionResult(
        source_url=source_url or signals.final_url,
        title=title,
        description=description,
        author=author,
        shortcode=shortcode,
        media=media,
    )
