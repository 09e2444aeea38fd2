"""Fixtures wiring the fakes in :mod:`tests.fakes` into real components."""

from __future__ import annotations

from collections.abc import Callable

import pytest

from tests.fakes import (
    SAMPLE_DESCRIPTIONS,
    SAMPLE_FRAGMENTS,
    VOCABULARY,
    FakeAnthropic,
    FakeEmbeddingsClient,
    FakeTranscriptProvider,
    FakeVideoModel,
    no_sleep,
    text_response,
)
from video_insight.analysis.topics import TopicSummarizer
from video_insight.cache.cache import ContentCache
from video_insight.cache.store import MemoryCacheStore
from video_insight.pipeline import VideoInsightService
from video_insight.retrieval.embeddings import EmbeddingEngine
from video_insight.retrieval.generation import ConversationEngine
from video_insight.retrieval.search import SearchIndex
from video_insight.transcripts.source import TranscriptSource
from video_insight.visual.extractor import DescriptionExtractor


@pytest.fixture
def cache() -> ContentCache:
    return ContentCache(MemoryCacheStore(), ttl_seconds=60)


@pytest.fixture
def embeddings_client() -> FakeEmbeddingsClient:
    return FakeEmbeddingsClient()


@pytest.fixture
def engine(embeddings_client: FakeEmbeddingsClient) -> EmbeddingEngine:
    return EmbeddingEngine(
        embeddings_client, dimensions=len(VOCABULARY), sleep=no_sleep  # type: ignore[arg-type]
    )


@pytest.fixture
def video_model() -> FakeVideoModel:
    return FakeVideoModel(SAMPLE_DESCRIPTIONS)


@pytest.fixture
def make_service(
    cache: ContentCache,
    engine: EmbeddingEngine,
    video_model: FakeVideoModel,
) -> Callable[..., VideoInsightService]:
    """Build a service from fakes; keyword arguments replace individual parts."""

    def _make(
        primary: FakeTranscriptProvider | None = None,
        fallback: FakeTranscriptProvider | None = None,
        anthropic: FakeAnthropic | None = None,
        summary_model: FakeVideoModel | None = None,
    ) -> VideoInsightService:
        primary = primary or FakeTranscriptProvider(SAMPLE_FRAGMENTS)
        anthropic = anthropic or FakeAnthropic(text_response("It is about pasta [00:00:02]."))
        extractor = DescriptionExtractor(video_model, cache, summary_model=summary_model)
        return VideoInsightService(
            cache=cache,
            transcripts=TranscriptSource(primary, fallback),
            extractor=extractor,
            index=SearchIndex(extractor, engine, cache),
            conversation=ConversationEngine(anthropic),  # type: ignore[arg-type]
            summarizer=TopicSummarizer(anthropic),  # type: ignore[arg-type]
        )

    return _make
