from __future__ import annotations


class ResolveError(Exception):
    """Base class for failures surfaced to API callers as ``{"error": ...}``."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidUrlError(ResolveError):
    """Input is malformed or does not point at the supported platform."""

    status_code = 400


class FetchFailedError(ResolveError):
    """The page accessor could not load the page (navigation error or timeout)."""

    status_code = 502


class NoMediaError(ResolveError):
    """The page loaded but no downloadable media was found."""

    status_code = 404


class UpstreamDownloadError(ResolveError):
    """The download proxy could not fetch the requested asset."""

    status_code = 502
