"""Visual search: build a per-video embedding index and query it."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from video_insight.cache.cache import ContentCache, embeddings_key
from video_insight.errors import (
    DescriptionsUnavailableError,
    EmbeddingError,
    IndexNotFoundError,
    InvalidInputError,
)
from video_insight.retrieval.embeddings import EmbeddingEngine, cosine_similarity
from video_insight.retrieval.models import EmbeddingRecord, IndexStatus, SearchResult
from video_insight.video_ids import extract_video_id
from video_insight.visual.extractor import (
    DEFAULT_INTERVAL_SECONDS,
    FALLBACK_DESCRIPTION,
    DescriptionExtractor,
)

logger = logging.getLogger(__name__)

DEFAULT_MIN_SIMILARITY = 0.3
DEFAULT_MAX_RESULTS = 10


def rank(
    query_vector: Sequence[float],
    records: Sequence[EmbeddingRecord],
    min_similarity: float = DEFAULT_MIN_SIMILARITY,
    max_results: int = DEFAULT_MAX_RESULTS,
) -> list[SearchResult]:
    """Flat scan: score every record, keep those above the threshold, best first."""
    scored = [
        SearchResult(
            text=record.text,
            timestamp=record.timestamp,
            similarity=cosine_similarity(query_vector, record.embedding),
            video_id=record.video_id,
        )
        for record in records
    ]
    if scored:
        similarities = [r.similarity for r in scored]
        logger.info(
            "Similarity distribution: max=%.3f min=%.3f avg=%.3f threshold=%.2f",
            max(similarities),
            min(similarities),
            sum(similarities) / len(similarities),
            min_similarity,
        )

    matches = [r for r in scored if r.similarity >= min_similarity]
    matches.sort(key=lambda r: r.similarity, reverse=True)
    return matches[:max_results]


def _require_video_id(content_ref: str) -> str:
    video_id = extract_video_id(content_ref)
    if video_id is None:
        raise InvalidInputError("Invalid YouTube URL provided")
    return video_id


class SearchIndex:
    """Per-video vector index over generated visual descriptions."""

    def __init__(
        self,
        extractor: DescriptionExtractor,
        engine: EmbeddingEngine,
        cache: ContentCache,
    ) -> None:
        self.extractor = extractor
        self.engine = engine
        self.cache = cache

    async def load(self, video_id: str) -> list[EmbeddingRecord] | None:
        """Return the cached index for *video_id*, or None if there is none.

        An index whose vectors do not match the engine's dimensionality was
        written under another embedding configuration and counts as a miss.
        """
        cached: Any = await self.cache.get(embeddings_key(video_id))
        if not cached:
            return None
        try:
            records = [EmbeddingRecord.from_dict(item) for item in cached]
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed cached embeddings for %s", video_id)
            return None

        stale = [r for r in records if len(r.embedding) != self.engine.dimensions]
        if stale:
            logger.warning(
                "Ignoring cached embeddings for %s: %d of %d records are not %d-dimensional",
                video_id,
                len(stale),
                len(records),
                self.engine.dimensions,
            )
            return None
        return records

    async def ensure_index(
        self, content_ref: str, interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    ) -> IndexStatus:
        """Build the index unless a cached one exists.

        The cache write is fire-and-forget: the status is returned before the
        write completes and write failures are only logged.
        """
        video_id = _require_video_id(content_ref)

        existing = await self.load(video_id)
        if existing:
            logger.info("Found cached index for %s (%d records)", video_id, len(existing))
            return IndexStatus(built=False, count=len(existing))

        descriptions = await self.extractor.extract(content_ref, interval_seconds)
        descriptions = [d for d in descriptions if d.description != FALLBACK_DESCRIPTION]
        if not descriptions:
            raise DescriptionsUnavailableError(
                "No visual descriptions could be extracted from the video"
            )

        vectors = await self.engine.embed_batch([d.description for d in descriptions])
        if len(vectors) != len(descriptions):
            raise EmbeddingError("Embedding count does not match description count")
        if len({len(v) for v in vectors}) > 1:
            raise EmbeddingError("Embeddings in one index must share a dimensionality")

        records = [
            EmbeddingRecord(
                text=description.description,
                embedding=vector,
                timestamp=description.timestamp,
                video_id=video_id,
            )
            for description, vector in zip(descriptions, vectors, strict=True)
        ]
        self.cache.try_write(embeddings_key(video_id), [r.to_dict() for r in records])

        logger.info("Built index for %s with %d records", video_id, len(records))
        return IndexStatus(built=True, count=len(records))

    async def search(
        self,
        content_ref: str,
        query: str,
        min_similarity: float = DEFAULT_MIN_SIMILARITY,
        max_results: int = DEFAULT_MAX_RESULTS,
    ) -> list[SearchResult]:
        """Rank indexed descriptions by similarity to *query*.

        Raises:
            InvalidInputError: Empty query, bad reference or ``max_results < 1``.
            IndexNotFoundError: No index has been built for the video.
        """
        if not query or not query.strip():
            raise InvalidInputError("Search query is required")
        if max_results < 1:
            raise InvalidInputError("max_results must be at least 1")
        video_id = _require_video_id(content_ref)

        records = await self.load(video_id)
        if not records:
            raise IndexNotFoundError(
                "No embeddings found for this video. Build the search index first."
            )

        query_vector = await self.engine.embed(query.strip())
        results = rank(query_vector, records, min_similarity, max_results)
        logger.info(
            "Search over %d records for %s returned %d results",
            len(records),
            video_id,
            len(results),
        )
        return results
