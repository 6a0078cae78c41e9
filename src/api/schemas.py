from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from src.resolver.base import MediaType, ResolutionResult


class ResolveRequest(BaseModel):
    url: str


class MediaItemOut(BaseModel):
    type: MediaType
    url: str


class ResolutionOut(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    ok: bool
    source_url: str = Field(serialization_alias="sourceUrl")
    author: str | None = None
    shortcode: str | None = None
    title: str
    description: str
    count: int
    media: list[MediaItemOut]

    @classmethod
    def from_result(cls, result: ResolutionResult) -> ResolutionOut:
        return cls(
            ok=result.ok,
            source_url=result.source_url,
            author=result.author,
            shortcode=result.shortcode,
            title=result.title,
            description=result.description,
            count=result.count,
            media=[MediaItemOut(type=m.media_type, url=m.url) for m in result.media],
        )


class ErrorOut(BaseModel):
    error: str
