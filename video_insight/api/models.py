"""Pydantic request/response schemas for the Video Insight API."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field


class SentenceModel(BaseModel):
    """A transcript sentence with seconds and HH:MM:SS times."""

    text: str
    start_time: float
    end_time: float
    duration: float
    formatted_start_time: str
    formatted_end_time: str
    lang: str = "en"


class TopicModel(BaseModel):
    topic: str
    timestamp: str


class TranscriptRequest(BaseModel):
    """Request body for the /api/transcript endpoint."""

    video_id: str


class TranscriptResponse(BaseModel):
    video_id: str
    source: str
    transcript: list[SentenceModel]


class ClearTranscriptResponse(BaseModel):
    video_id: str
    status: str = "cleared"


class AnalyzeRequest(BaseModel):
    """Request body for /api/analyze and /api/video-analysis."""

    video_url: str


class AnalyzeResponse(BaseModel):
    video_id: str
    transcript: list[SentenceModel]
    topics: list[TopicModel]


class VideoSummaryResponse(BaseModel):
    summary: str


class EmbeddingsRequest(BaseModel):
    """Request body for the /api/video-embeddings endpoint."""

    video_url: str
    interval_seconds: int = Field(default=30, gt=0)


class EmbeddingsResponse(BaseModel):
    built: bool
    count: int
    message: str


class SearchRequest(BaseModel):
    """Request body for the /api/video-search endpoint."""

    video_url: str
    query: str
    min_similarity: float = Field(default=0.3, ge=-1.0, le=1.0)
    max_results: int = Field(default=10, ge=1)


class SearchResultModel(BaseModel):
    text: str
    timestamp: str
    similarity: float
    video_id: str


class SearchResponse(BaseModel):
    query: str
    results: list[SearchResultModel]
    count: int


class ChatTurn(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ChatRequest(BaseModel):
    """Request body for the /api/video-chat endpoint."""

    video_id: str
    question: str
    chat_history: list[ChatTurn] = []


class ChatResponse(BaseModel):
    answer: str
