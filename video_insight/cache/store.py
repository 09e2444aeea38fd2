"""Key-value stores with per-entry expiry backing the content cache."""

from __future__ import annotations

import asyncio
import time
from datetime import UTC, datetime, timedelta
from typing import Any, Protocol, cast

from supabase import Client, create_client


class CacheStore(Protocol):
    """Opaque get/set-with-expiry service."""

    async def get(self, key: str) -> str | None: ...

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None: ...

    async def delete(self, key: str) -> None: ...


def get_supabase_client(url: str, key: str) -> Client:
    """Create and return a Supabase client."""
    return create_client(url, key)


class SupabaseCacheStore:
    """Cache entries stored as rows of a Supabase table.

    Expected schema::

        create table cache_entries (
            key text primary key,
            value text not null,
            expires_at timestamptz not null
        );

    Expired rows are treated as absent; they are overwritten on the next write.
    """

    def __init__(self, client: Client, table: str = "cache_entries") -> None:
        self.client = client
        self.table = table

    def _get(self, key: str) -> str | None:
        result = (
            self.client.table(self.table)
            .select("value,expires_at")
            .eq("key", key)
            .limit(1)
            .execute()
        )
        rows = cast(list[dict[str, Any]], result.data)
        if not rows:
            return None
        expires_at = datetime.fromisoformat(str(rows[0]["expires_at"]))
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=UTC)
        if expires_at <= datetime.now(UTC):
            return None
        return str(rows[0]["value"])

    def _set(self, key: str, value: str, ttl_seconds: int) -> None:
        expires_at = datetime.now(UTC) + timedelta(seconds=ttl_seconds)
        self.client.table(self.table).upsert(
            {"key": key, "value": value, "expires_at": expires_at.isoformat()},
            on_conflict="key",
        ).execute()

    def _delete(self, key: str) -> None:
        self.client.table(self.table).delete().eq("key", key).execute()

    # The Supabase client is synchronous; keep it off the event loop.
    async def get(self, key: str) -> str | None:
        return await asyncio.to_thread(self._get, key)

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        await asyncio.to_thread(self._set, key, value, ttl_seconds)

    async def delete(self, key: str) -> None:
        await asyncio.to_thread(self._delete, key)


class MemoryCacheStore:
    """Process-local store used when Supabase is not configured."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at <= time.monotonic():
            del self._entries[key]
            return None
        return value

    async def set_with_expiry(self, key: str, value: str, ttl_seconds: int) -> None:
        self._entries[key] = (value, time.monotonic() + ttl_seconds)

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)
