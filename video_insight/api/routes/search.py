"""Visual search endpoints: build the per-video index, then query it."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from video_insight.api.errors import to_http_exception
from video_insight.api.models import (
    EmbeddingsRequest,
    EmbeddingsResponse,
    SearchRequest,
    SearchResponse,
    SearchResultModel,
)
from video_insight.errors import VideoInsightError
from video_insight.pipeline import VideoInsightService, get_service

router = APIRouter()


@router.post("/api/video-embeddings", response_model=EmbeddingsResponse)
async def build_embeddings(
    request: EmbeddingsRequest,
    service: VideoInsightService = Depends(get_service),
) -> EmbeddingsResponse:
    """Build the search index for a video unless one is already cached."""
    try:
        status = await service.build_search_index(request.video_url, request.interval_seconds)
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc

    if status.built:
        message = f"Generated {status.count} embeddings"
    else:
        message = f"Using {status.count} cached embeddings"
    return EmbeddingsResponse(built=status.built, count=status.count, message=message)


@router.post("/api/video-search", response_model=SearchResponse)
async def search(
    request: SearchRequest,
    service: VideoInsightService = Depends(get_service),
) -> SearchResponse:
    try:
        results = await service.search_content(
            request.video_url,
            request.query,
            min_similarity=request.min_similarity,
            max_results=request.max_results,
        )
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc

    return SearchResponse(
        query=request.query,
        results=[SearchResultModel(**r.to_dict()) for r in results],
        count=len(results),
    )
