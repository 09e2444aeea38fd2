"""Best-effort JSON cache over a :class:`CacheStore`.

Caching is an optimisation, never a correctness dependency: read failures are
reported as misses and write failures are logged and swallowed.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

from video_insight.cache.store import CacheStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 30 * 24 * 60 * 60

TRANSCRIPT_PREFIX = "video:transcript"
DESCRIPTIONS_PREFIX = "video:descriptions"
EMBEDDINGS_PREFIX = "video:embeddings"


def transcript_key(video_id: str) -> str:
    return f"{TRANSCRIPT_PREFIX}:{video_id}"


def descriptions_key(
    video_id: str,
    interval_seconds: int,
    start_seconds: int | None = None,
    end_seconds: int | None = None,
) -> str:
    """Key for extracted descriptions; interval and range keep configurations apart."""
    if start_seconds is None or end_seconds is None:
        return f"{DESCRIPTIONS_PREFIX}:{video_id}:{interval_seconds}s"
    return f"{DESCRIPTIONS_PREFIX}:{video_id}:{start_seconds}-{end_seconds}:{interval_seconds}s"


def embeddings_key(video_id: str) -> str:
    return f"{EMBEDDINGS_PREFIX}:{video_id}"


class ContentCache:
    """JSON values keyed by content identity, all written with one fixed TTL."""

    def __init__(self, store: CacheStore, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> None:
        self.store = store
        self.ttl_seconds = ttl_seconds
        self._pending: set[asyncio.Task[bool]] = set()

    async def get(self, key: str) -> Any | None:
        """Return the cached value, or ``None`` on a miss or any read/decode error."""
        try:
            raw = await self.store.get(key)
        except Exception:
            logger.exception("Cache read failed for %s", key)
            return None

        if raw is None:
            logger.debug("Cache miss for %s", key)
            return None

        try:
            return json.loads(raw)
        except (TypeError, ValueError):
            logger.warning("Discarding undecodable cache entry %s", key)
            return None

    async def set(self, key: str, value: Any) -> bool:
        """Store *value*; returns False (after logging) if the write failed."""
        try:
            await self.store.set_with_expiry(key, json.dumps(value), self.ttl_seconds)
        except Exception:
            logger.exception("Cache write failed for %s", key)
            return False
        logger.info("Cached %s", key)
        return True

    async def delete(self, key: str) -> None:
        try:
            await self.store.delete(key)
        except Exception:
            logger.exception("Cache delete failed for %s", key)
            return
        logger.info("Cleared cache entry %s", key)

    def try_write(self, key: str, value: Any) -> asyncio.Task[bool]:
        """Schedule a write without waiting for it.

        The returned task never raises; callers may ignore it. Pending writes
        are tracked so :meth:`flush` can wait for them.
        """
        task = asyncio.get_running_loop().create_task(self.set(key, value))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)
        return task

    async def flush(self) -> None:
        """Wait for all scheduled background writes to finish."""
        if self._pending:
            await asyncio.gather(*list(self._pending))
