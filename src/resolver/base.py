from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class MediaType(StrEnum):
    IMAGE = "image"
    VIDEO = "video"


@dataclass(frozen=True)
class MediaItem:
    """A single downloadable asset hosted on an allow-listed CDN."""

    url: str
    media_type: MediaType


@dataclass
class ResolutionResult:
    """Structured outcome of resolving one post URL."""

    source_url: str
    title: str
    description: str = ""
    author: str | None = None
    shortcode: str | None = None
    media: list[MediaItem] = field(default_factory=list)

    @property
    def count(self) -> int:
        return len(self.media)

    @property
    def ok(self) -> bool:
        return self.count > 0


@dataclass
class PageSnapshot:
    """What a page accessor hands back after a successful navigation."""

    meta_tags: dict[str, str] = field(default_factory=dict)
    markup: str = ""
    final_url: str = ""


@dataclass
class RawPageSignals:
    """Everything the extractor reads. Built fresh per request."""

    meta_tags: dict[str, str] = field(default_factory=dict)
    markup: str = ""
    final_url: str = ""
    structured_data: list[dict[str, Any]] = field(default_factory=list)


class PageAccessor(ABC):
    """A single-use handle on a rendered page.

    The orchestrator creates one accessor per resolution, calls `navigate`
    at most once and always awaits `close`, even when navigation raised.
    """

    @abstractmethod
    async def navigate(
        self, url: str, headers: dict[str, str], timeout: float
    ) -> PageSnapshot:
        """Load *url* and return its metadata tags, markup and final URL.

        Implementations raise `FetchFailedError` on navigation failure.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release the underlying browser resources. Must be idempotent."""
        ...
