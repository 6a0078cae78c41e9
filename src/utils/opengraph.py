"""Pull Open Graph metadata and JSON-LD blocks out of rendered page markup.

The browser accessor already reads meta tags from the live DOM; this module
fills whatever it missed from the raw markup and turns an accessor snapshot
into the signals the extractor consumes.
"""

from __future__ import annotations

import json
import re
from typing import Any

import structlog

from src.resolver.base import PageSnapshot, RawPageSignals

logger = structlog.get_logger()

# Regex patterns for og: meta tags (handles both property= and name= variants,
# and both single and double quotes, and content before/after property)
_OG_PATTERN = re.compile(
    r'<meta\s+(?:[^>]*?)'
    r'(?:property|name)\s*=\s*["\'](og:[\w:]+)["\']'
    r'[^>]*?content\s*=\s*["\']([^"\']*?)["\']',
    re.IGNORECASE | re.DOTALL,
)
_OG_PATTERN_REV = re.compile(
    r'<meta\s+(?:[^>]*?)'
    r'content\s*=\s*["\']([^"\']*?)["\']'
    r'[^>]*?(?:property|name)\s*=\s*["\'](og:[\w:]+)["\']',
    re.IGNORECASE | re.DOTALL,
)
_LD_JSON_PATTERN = re.compile(
    r'<script[^>]*type\s*=\s*["\']application/ld\+json["\'][^>]*>(.*?)</script>',
    re.IGNORECASE | re.DOTALL,
)


def parse_meta_tags(markup: str) -> dict[str, str]:
    """Extract ``og:*`` meta tags from markup. First occurrence of a key wins."""
    found: dict[str, str] = {}

    # Try both orderings of property/content attributes
    for match in _OG_PATTERN.finditer(markup):
        key, value = match.group(1).lower(), match.group(2)
        found.setdefault(key, value)

    for match in _OG_PATTERN_REV.finditer(markup):
        value, key = match.group(1), match.group(2).lower()
        found.setdefault(key, value)

    return found


def parse_structured_data(markup: str) -> list[dict[str, Any]]:
    """Best-effort parse of ``application/ld+json`` blocks.

    Unparseable blocks are skipped; top-level arrays are flattened.
    """
    blocks: list[dict[str, Any]] = []
    for match in _LD_JSON_PATTERN.finditer(markup):
        raw = match.group(1).strip()
        if not raw:
            continue
        try:
            data = json.loads(raw)
        except ValueError as exc:
            logger.debug("ld_json_parse_failed", error=str(exc))
            continue

        if isinstance(data, dict):
            blocks.append(data)
        elif isinstance(data, list):
            blocks.extend(item for item in data if isinstance(item, dict))
    return blocks


def build_signals(snapshot: PageSnapshot) -> RawPageSignals:
    """Merge DOM-read tags with markup-parsed ones. DOM values take precedence."""
    meta_tags = parse_meta_tags(snapshot.markup)
    meta_tags.update({k.lower(): v for k, v in snapshot.meta_tags.items() if v})

    return RawPageSignals(
        meta_tags=meta_tags,
        markup=snapshot.markup,
        final_url=snapshot.final_url,
        structured_data=parse_structured_data(snapshot.markup),
    )
