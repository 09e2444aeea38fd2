"""Chat endpoint: answer questions grounded in a video's transcript."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from video_insight.api.errors import to_http_exception
from video_insight.api.models import ChatRequest, ChatResponse
from video_insight.errors import VideoInsightError
from video_insight.pipeline import VideoInsightService, get_service
from video_insight.retrieval.models import ChatMessage

router = APIRouter()


@router.post("/api/video-chat", response_model=ChatResponse)
async def video_chat(
    request: ChatRequest,
    service: VideoInsightService = Depends(get_service),
) -> ChatResponse:
    history = [ChatMessage(role=turn.role, content=turn.content) for turn in request.chat_history]
    try:
        answer = await service.chat(request.video_id, request.question, history)
    except VideoInsightError as exc:
        raise to_http_exception(exc) from exc
    return ChatResponse(answer=answer)
