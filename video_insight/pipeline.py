"""Orchestration of transcript, analysis, search and chat operations.

:class:`VideoInsightService` wires the components together; each method is
one request-scoped operation with no state shared between calls beyond the
content cache.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from functools import lru_cache

from video_insight import clients
from video_insight.analysis.topics import Topic, TopicSummarizer
from video_insight.cache.cache import ContentCache, transcript_key
from video_insight.config import Settings, get_settings
from video_insight.errors import InvalidInputError, TranscriptUnavailableError
from video_insight.retrieval.embeddings import EmbeddingEngine
from video_insight.retrieval.generation import ConversationEngine
from video_insight.retrieval.models import ChatMessage, IndexStatus, SearchResult
from video_insight.retrieval.search import SearchIndex
from video_insight.transcripts.models import FormattedSentence, TranscriptFragment
from video_insight.transcripts.segmenter import format_with_timestamps
from video_insight.transcripts.source import TranscriptSource
from video_insight.video_ids import extract_video_id
from video_insight.visual.extractor import DescriptionExtractor

logger = logging.getLogger(__name__)

CACHE_SOURCE = "cache"


@dataclass
class SegmentedTranscript:
    video_id: str
    sentences: list[FormattedSentence]
    source: str  # "primary", "fallback" or "cache"


@dataclass
class ContentAnalysis:
    video_id: str
    sentences: list[FormattedSentence]
    topics: list[Topic] = field(default_factory=list)


def _video_id(content_ref: str) -> str:
    if not content_ref or not content_ref.strip():
        raise InvalidInputError("Video URL or ID is required")
    video_id = extract_video_id(content_ref.strip())
    if video_id is None:
        raise InvalidInputError("Invalid YouTube URL provided")
    return video_id


def _fragments_from_cache(cached: object) -> list[TranscriptFragment] | None:
    if not isinstance(cached, list) or not cached:
        return None
    try:
        return [
            TranscriptFragment(
                text=str(item["text"]),
                offset=float(item["offset"]),
                duration=float(item["duration"]),
                lang=item.get("lang"),
            )
            for item in cached
        ]
    except (KeyError, TypeError, ValueError, AttributeError):
        return None


class VideoInsightService:
    """Core operations exposed to the HTTP layer."""

    def __init__(
        self,
        cache: ContentCache,
        transcripts: TranscriptSource,
        extractor: DescriptionExtractor,
        index: SearchIndex,
        conversation: ConversationEngine,
        summarizer: TopicSummarizer,
        interval_seconds: int = 30,
        min_similarity: float = 0.3,
        max_results: int = 10,
    ) -> None:
        self.cache = cache
        self.transcripts = transcripts
        self.extractor = extractor
        self.index = index
        self.conversation = conversation
        self.summarizer = summarizer
        self.interval_seconds = interval_seconds
        self.min_similarity = min_similarity
        self.max_results = max_results

    @classmethod
    def from_settings(cls, settings: Settings) -> VideoInsightService:
        cache = ContentCache(clients.make_cache_store(settings), settings.cache_ttl_seconds)
        description_model, summary_model = clients.make_video_models(settings)
        extractor = DescriptionExtractor(
            description_model,
            cache,
            summary_model=summary_model,
            chunk_minutes=settings.description_chunk_minutes,
        )
        engine = EmbeddingEngine(
            clients.make_openai_client(settings),
            model=settings.embedding_model,
            dimensions=settings.embedding_dimensions,
            max_batch_size=settings.embedding_max_batch_size,
            max_concurrency=settings.embedding_max_concurrency,
            max_retries=settings.embedding_max_retries,
            retry_delay=settings.embedding_retry_delay_seconds,
        )
        anthropic = clients.make_anthropic_client(settings)
        return cls(
            cache=cache,
            transcripts=clients.make_transcript_source(settings),
            extractor=extractor,
            index=SearchIndex(extractor, engine, cache),
            conversation=ConversationEngine(anthropic, model=settings.llm_model),
            summarizer=TopicSummarizer(anthropic, model=settings.llm_model),
            interval_seconds=settings.description_interval_seconds,
            min_similarity=settings.search_min_similarity,
            max_results=settings.search_max_results,
        )

    async def load_transcript(self, content_ref: str) -> SegmentedTranscript:
        """Fetch (cache first) and segment the transcript for a video.

        Raises:
            InvalidInputError: The reference is not a recognisable video.
            TranscriptUnavailableError: Neither provider had a transcript.
        """
        video_id = _video_id(content_ref)
        key = transcript_key(video_id)

        fragments = _fragments_from_cache(await self.cache.get(key))
        source = CACHE_SOURCE
        if fragments is None:
            result = await self.transcripts.fetch(video_id)
            if result is None:
                raise TranscriptUnavailableError("Could not fetch transcript for this video")
            fragments = result.fragments
            source = result.source
            await self.cache.set(key, [f.to_dict() for f in fragments])
        else:
            logger.info("Using cached transcript for %s", video_id)

        sentences = format_with_timestamps(fragments)
        logger.info(
            "Segmented %d fragments into %d sentences for %s",
            len(fragments),
            len(sentences),
            video_id,
        )
        return SegmentedTranscript(video_id=video_id, sentences=sentences, source=source)

    async def fetch_and_segment_transcript(self, content_ref: str) -> list[FormattedSentence]:
        return (await self.load_transcript(content_ref)).sentences

    async def clear_transcript(self, content_ref: str) -> None:
        """Drop the cached transcript so the next fetch goes to the providers."""
        await self.cache.delete(transcript_key(_video_id(content_ref)))

    async def analyze_content(self, content_ref: str) -> ContentAnalysis:
        transcript = await self.load_transcript(content_ref)
        topics = await self.summarizer.summarize(transcript.sentences)
        return ContentAnalysis(
            video_id=transcript.video_id,
            sentences=transcript.sentences,
            topics=topics,
        )

    async def build_search_index(
        self, content_ref: str, interval_seconds: int | None = None
    ) -> IndexStatus:
        _video_id(content_ref)
        return await self.index.ensure_index(content_ref, interval_seconds or self.interval_seconds)

    async def search_content(
        self,
        content_ref: str,
        query: str,
        min_similarity: float | None = None,
        max_results: int | None = None,
    ) -> list[SearchResult]:
        _video_id(content_ref)
        return await self.index.search(
            content_ref,
            query,
            self.min_similarity if min_similarity is None else min_similarity,
            self.max_results if max_results is None else max_results,
        )

    async def chat(
        self,
        content_ref: str,
        question: str,
        history: Sequence[ChatMessage] = (),
    ) -> str:
        if not question or not question.strip():
            raise InvalidInputError("Question is required")
        transcript = await self.load_transcript(content_ref)
        return await self.conversation.answer(transcript.sentences, history, question)

    async def summarize_video(self, content_ref: str) -> str:
        _video_id(content_ref)
        return await self.extractor.summarize(content_ref)


@lru_cache(maxsize=1)
def get_service() -> VideoInsightService:
    """Process-wide service built from settings (FastAPI dependency)."""
    return VideoInsightService.from_settings(get_settings())
