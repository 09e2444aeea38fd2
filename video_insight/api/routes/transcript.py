"""Transcript endpoints: fetch-and-segment, and cache invalidation."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from video_insight.api.errors import to_http_exception
from video_insight.api.models import (
    ClearTranscriptResponse,
    SentenceModel,
    TranscriptRequest,
    TranscriptResponse,
)
from video_insight.errors import VideoInsightError
from video_insight.pipeline import VideoInsightService, get_service

router = APIRouter()


@router.post("/api/transcript", response_model=TranscriptResponse)
async def get_transcript(
    request: TranscriptRequest,
    service: VideoInsightService = Depends(get_service),
) -> TranscriptResponse:
    """Fetch (cache first) and segment the transcript of a video."""
    try:
        transcript = await service.load_transcript(request.video_id)
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc

    return TranscriptResponse(
        video_id=transcript.video_id,
        source=transcript.source,
        transcript=[SentenceModel(**s.to_dict()) for s in transcript.sentences],
    )


@router.delete("/api/transcript/{video_id}", response_model=ClearTranscriptResponse)
async def clear_transcript(
    video_id: str,
    service: VideoInsightService = Depends(get_service),
) -> ClearTranscriptResponse:
    try:
        await service.clear_transcript(video_id)
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc
    return ClearTranscriptResponse(video_id=video_id)
