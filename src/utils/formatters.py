from __future__ import annotations

import html
import re

_TAG_RE = re.compile(r"<[^>]*>")
_UNSAFE_FILENAME_RE = re.compile(r"[^A-Za-z0-9._-]")

# content-type fragment -> file extension, checked in order
_CONTENT_TYPE_EXTS: list[tuple[str, str]] = [
    ("mp4", "mp4"),
    ("quicktime", "mov"),
    ("webm", "webm"),
    ("jpeg", "jpg"),
    ("jpg", "jpg"),
    ("png", "png"),
    ("webp", "webp"),
    ("gif", "gif"),
]


def strip_markup(text: str | None) -> str:
    """Reduce a metadata value to plain text: drop tags, decode entities, trim."""
    if not text:
        return ""
    plain = html.unescape(_TAG_RE.sub("", text))
    # a second pass catches tags that were entity-encoded in the source
    plain = _TAG_RE.sub("", plain)
    return plain.strip()


def placeholder_title(platform_name: str, shortcode: str | None = None) -> str:
    """Fallback title used when a page carries no usable og:title."""
    if shortcode:
        return f"{platform_name} post {shortcode}"
    return platform_name


def sanitize_filename(name: str | None, fallback: str = "media") -> str:
    """Replace anything outside ``[A-Za-z0-9._-]`` so the name is header-safe."""
    cleaned = _UNSAFE_FILENAME_RE.sub("_", (name or "").strip())
    cleaned = cleaned.strip(".")
    return cleaned or fallback


def extension_for(content_type: str | None, is_video: bool) -> str:
    """Pick a file extension from a response content-type.

    Falls back to ``mp4``/``jpg`` when the upstream type is missing or unknown.
    """
    ct = (content_type or "").lower()
    for fragment, ext in _CONTENT_TYPE_EXTS:
        if fragment in ct:
            return ext
    return "mp4" if is_video else "jpg"
