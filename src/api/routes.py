from __future__ import annotations

import structlog
from fastapi import APIRouter, Query, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from src.api.schemas import ErrorOut, ResolutionOut, ResolveRequest
from src.resolver import MediaType
from src.resolver.orchestrator import MediaResolver
from src.utils.downloader import attachment_filename, open_media_stream

logger = structlog.get_logger()

router = APIRouter()

_ERROR_RESPONSES = {
    400: {"model": ErrorOut},
    404: {"model": ErrorOut},
    500: {"model": ErrorOut},
    502: {"model": ErrorOut},
}


@router.get("/health", summary="Liveness check")
async def health() -> dict[str, str]:
    return {"status": "healthy"}


@router.post(
    "/api/resolve",
    response_model=ResolutionOut,
    response_model_by_alias=True,
    responses=_ERROR_RESPONSES,
    summary="Resolve a post URL into its media",
)
async def resolve(body: ResolveRequest, request: Request) -> ResolutionOut:
    resolver: MediaResolver = request.app.state.resolver
    result = await resolver.resolve(body.url)
    return ResolutionOut.from_result(result)


@router.get(
    "/api/download",
    responses=_ERROR_RESPONSES,
    summary="Proxy a media asset with a download filename",
)
async def download(
    src: str = Query(..., description="Media URL returned by /api/resolve"),
    media_type: MediaType = Query(MediaType.IMAGE, alias="type"),
    name: str | None = Query(None),
) -> StreamingResponse:
    stream = await open_media_stream(src)
    filename = attachment_filename(name, media_type, stream.content_type)
    logger.info("media_download_started", url=src, filename=filename)

    headers = {"Content-Disposition": f'attachment; filename="{filename}"'}
    if stream.content_length is not None:
        headers["Content-Length"] = str(stream.content_length)

    return StreamingResponse(
        stream.iter_chunks(),
        media_type=stream.content_type,
        headers=headers,
        # covers clients that disconnect before the body is iterated
        background=BackgroundTask(stream.close),
    )
