"""Map pipeline errors onto HTTP responses."""

from __future__ import annotations

import anthropic
import openai
from fastapi import HTTPException

from video_insight.errors import (
    AnalysisError,
    DescriptionsUnavailableError,
    IndexNotFoundError,
    InvalidInputError,
    TranscriptUnavailableError,
    UpstreamError,
    VideoInsightError,
)

_STATUS_CODES: list[tuple[type[VideoInsightError], int]] = [
    (InvalidInputError, 400),
    (TranscriptUnavailableError, 404),
    (DescriptionsUnavailableError, 404),
    (IndexNotFoundError, 404),
    (UpstreamError, 502),
    (AnalysisError, 502),
]


def _is_rate_limited(exc: BaseException) -> bool:
    cause = exc.__cause__
    while cause is not None:
        if isinstance(cause, (openai.RateLimitError, anthropic.RateLimitError)):
            return True
        cause = cause.__cause__
    return False


def to_http_exception(exc: VideoInsightError) -> HTTPException:
    """HTTP error for *exc*; the detail is the error message, never the class name."""
    if _is_rate_limited(exc):
        return HTTPException(
            status_code=429, detail="Rate limit exceeded. Please try again later."
        )
    for error_type, status_code in _STATUS_CODES:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail="Internal server error")
