from src.resolver.base import (
    MediaItem,
    MediaType,
    PageAccessor,
    PageSnapshot,
    RawPageSignals,
    ResolutionResult,
)
from src.resolver.errors import (
    FetchFailedError,
    InvalidUrlError,
    NoMediaError,
    ResolveError,
    UpstreamDownloadError,
)

# extractor/orchestrator depend on src.utils, which imports this package;
# import them by full module path.
__all__ = [
    "MediaItem",
    "MediaType",
    "PageAccessor",
    "PageSnapshot",
    "RawPageSignals",
    "ResolutionResult",
    "ResolveError",
    "InvalidUrlError",
    "FetchFailedError",
    "NoMediaError",
    "UpstreamDownloadError",
]
