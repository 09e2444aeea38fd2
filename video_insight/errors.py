"""Caller-visible error kinds raised by the video insight pipeline."""

from __future__ import annotations


class VideoInsightError(Exception):
    """Base class for errors surfaced to callers of the pipeline."""


class InvalidInputError(VideoInsightError):
    """Bad or missing content reference, empty query or empty question."""


class TranscriptUnavailableError(VideoInsightError):
    """Neither transcript provider returned fragments for the video."""


class DescriptionsUnavailableError(VideoInsightError):
    """No visual descriptions could be extracted for the video."""


class IndexNotFoundError(VideoInsightError):
    """Search requested for a video whose index was never built."""


class UpstreamError(VideoInsightError):
    """A generative provider call failed outright."""


class EmbeddingError(UpstreamError):
    """The embedding provider kept failing after all retries."""


class AnalysisError(VideoInsightError):
    """The topic outline could not be generated."""
