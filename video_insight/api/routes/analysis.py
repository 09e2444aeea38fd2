"""Content analysis endpoints: topic outline and video summary."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from video_insight.api.errors import to_http_exception
from video_insight.api.models import (
    AnalyzeRequest,
    AnalyzeResponse,
    SentenceModel,
    TopicModel,
    VideoSummaryResponse,
)
from video_insight.errors import VideoInsightError
from video_insight.pipeline import VideoInsightService, get_service

router = APIRouter()


@router.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze(
    request: AnalyzeRequest,
    service: VideoInsightService = Depends(get_service),
) -> AnalyzeResponse:
    """Segmented transcript plus a sequential topic outline."""
    try:
        analysis = await service.analyze_content(request.video_url)
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc

    return AnalyzeResponse(
        video_id=analysis.video_id,
        transcript=[SentenceModel(**s.to_dict()) for s in analysis.sentences],
        topics=[TopicModel(**t.to_dict()) for t in analysis.topics],
    )


@router.post("/api/video-analysis", response_model=VideoSummaryResponse)
async def video_analysis(
    request: AnalyzeRequest,
    service: VideoInsightService = Depends(get_service),
) -> VideoSummaryResponse:
    """Three-sentence summary generated by the video model."""
    try:
        summary = await service.summarize_video(request.video_url)
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc
    return VideoSummaryResponse(summary=summary)
