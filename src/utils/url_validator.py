from __future__ import annotations

import re
from urllib.parse import urlparse, urlunparse

from src.config import settings
from src.resolver.errors import InvalidUrlError

_ALLOWED_SCHEMES = ("http", "https")
_SCHEME_PREFIX = re.compile(r"^[A-Za-z][A-Za-z0-9+.-]*://")


def _host_matches(hostname: str, domain: str) -> bool:
    """True for the domain itself or any subdomain of it."""
    domain = domain.lower().lstrip(".")
    return hostname == domain or hostname.endswith("." + domain)


def normalize_url(raw: str, domain: str | None = None) -> str:
    """Validate a user-supplied post URL and return its canonical form.

    Adds ``https://`` when no scheme is given, rejects anything not hosted on
    *domain* (or a subdomain), and strips the query string and fragment so
    share/tracking parameters never leak into the navigated URL.
    """
    domain = domain or settings.platform_domain
    url = (raw or "").strip()
    if not url:
        raise InvalidUrlError("A URL is required")

    if not _SCHEME_PREFIX.match(url):
        url = f"https://{url.lstrip('/')}"

    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
        parsed.port  # raises ValueError on a malformed port
    except ValueError as exc:
        raise InvalidUrlError(f"Malformed URL: {raw}") from exc

    if parsed.scheme.lower() not in _ALLOWED_SCHEMES or not hostname:
        raise InvalidUrlError(f"Malformed URL: {raw}")

    if not _host_matches(hostname.lower(), domain):
        raise InvalidUrlError(f"Only {domain} URLs are supported")

    cleaned = parsed._replace(query="", fragment="")
    return urlunparse(cleaned)


def is_allowed_media_url(url: str, cdn_hosts: list[str] | tuple[str, ...]) -> bool:
    """Check that *url* is absolute https and served from an allow-listed CDN.

    A CDN entry matches its own host and any subdomain of it, never a host
    that merely contains it.
    """
    try:
        parsed = urlparse(url)
        hostname = parsed.hostname
    except ValueError:
        return False

    if parsed.scheme != "https" or not hostname:
        return False

    hostname = hostname.lower()
    return any(_host_matches(hostname, cdn) for cdn in cdn_hosts)
