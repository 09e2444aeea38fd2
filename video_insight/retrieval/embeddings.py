"""Embedding helpers using OpenAI text-embedding-3-small.

Large inputs are split into provider-sized chunks, dispatched with bounded
concurrency and retried with exponential backoff. Failures that survive the
retries propagate: a partially embedded index is worse than no index.
"""

from __future__ import annotations

import asyncio
import logging
import math
from collections.abc import Awaitable, Callable, Sequence

from openai import AsyncOpenAI
from tenacity import AsyncRetrying, before_sleep_log, stop_after_attempt, wait_exponential

from video_insight.errors import EmbeddingError

logger = logging.getLogger(__name__)

MAX_BATCH_SIZE = 100
MAX_CONCURRENT_CHUNKS = 3
MAX_RETRIES = 3
RETRY_DELAY_SECONDS = 1.0


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """Cosine similarity of two equal-length vectors.

    Raises:
        ValueError: If the vectors differ in length.
    """
    if len(a) != len(b):
        raise ValueError(f"Vectors must have the same length ({len(a)} != {len(b)})")

    dot = sum(x * y for x, y in zip(a, b, strict=True))
    norm_a = math.sqrt(sum(x * x for x in a))
    norm_b = math.sqrt(sum(y * y for y in b))
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return dot / (norm_a * norm_b)


class EmbeddingEngine:
    """Turn text into vectors with the OpenAI embeddings API.

    Args:
        client: OpenAI async client.
        model: Embedding model name.
        dimensions: Output dimensionality; every vector in an index shares it.
        max_batch_size: Texts per provider request.
        max_concurrency: Chunk requests allowed in flight at once.
        max_retries: Total attempts per chunk.
        retry_delay: Base backoff in seconds; attempt *n* waits
            ``retry_delay * 2 ** n``.
        sleep: Awaitable delay function (replaced by a recorder in tests).
    """

    def __init__(
        self,
        client: AsyncOpenAI,
        model: str = "text-embedding-3-small",
        dimensions: int = 512,
        max_batch_size: int = MAX_BATCH_SIZE,
        max_concurrency: int = MAX_CONCURRENT_CHUNKS,
        max_retries: int = MAX_RETRIES,
        retry_delay: float = RETRY_DELAY_SECONDS,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self.client = client
        self.model = model
        self.dimensions = dimensions
        self.max_batch_size = max_batch_size
        self.max_concurrency = max_concurrency
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def _create(self, texts: list[str]) -> list[list[float]]:
        response = await self.client.embeddings.create(
            model=self.model,
            input=texts,
            encoding_format="float",
            dimensions=self.dimensions,
        )
        data = sorted(response.data, key=lambda item: item.index)
        if len(data) != len(texts):
            raise ValueError(f"Expected {len(texts)} embeddings, got {len(data)}")
        return [list(item.embedding) for item in data]

    async def _embed_chunk(self, texts: list[str]) -> list[list[float]]:
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=wait_exponential(multiplier=self.retry_delay),
            sleep=self._sleep,
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        try:
            return await retrying(self._create, texts)
        except Exception as exc:
            logger.error(
                "Embedding chunk of %d texts failed after %d attempts", len(texts), self.max_retries
            )
            raise EmbeddingError("Failed to generate embeddings") from exc

    async def embed(self, text: str) -> list[float]:
        """Embed a single text."""
        return (await self._embed_chunk([text]))[0]

    async def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        """Embed many texts, preserving input order."""
        texts = list(texts)
        if not texts:
            return []

        if len(texts) <= self.max_batch_size:
            return await self._embed_chunk(texts)

        chunks = [
            texts[i : i + self.max_batch_size] for i in range(0, len(texts), self.max_batch_size)
        ]
        logger.info(
            "Embedding %d texts in %d chunks (max %d concurrent)",
            len(texts),
            len(chunks),
            self.max_concurrency,
        )

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(chunk: list[str]) -> list[list[float]]:
            async with semaphore:
                return await self._embed_chunk(chunk)

        # A chunk that exhausts its retries cancels the chunks still in flight.
        try:
            async with asyncio.TaskGroup() as group:
                tasks = [group.create_task(_bounded(chunk)) for chunk in chunks]
        except ExceptionGroup as failures:
            raise failures.exceptions[0]
        return [vector for task in tasks for vector in task.result()]
