"""Transcript fetching with a primary provider and a fallback provider.

The primary source is YouTube's own caption track (via youtube-transcript-api);
the fallback is the RapidAPI "youtube-transcriptor" service. Both are
normalised to :class:`TranscriptFragment`.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Sequence
from typing import Any, Protocol

import httpx
from youtube_transcript_api import YouTubeTranscriptApi

from video_insight.transcripts.models import TranscriptFragment, TranscriptResult

logger = logging.getLogger(__name__)

PRIMARY = "primary"
FALLBACK = "fallback"


class TranscriptProvider(Protocol):
    async def fetch(self, video_id: str) -> list[TranscriptFragment]: ...


class YouTubeTranscriptProvider:
    """Primary provider: captions fetched directly from YouTube."""

    def __init__(
        self,
        api: YouTubeTranscriptApi | None = None,
        languages: Sequence[str] = ("en",),
    ) -> None:
        self.api = api or YouTubeTranscriptApi()
        self.languages = list(languages)

    def _fetch(self, video_id: str) -> list[TranscriptFragment]:
        transcript = self.api.fetch(video_id, languages=self.languages)
        lang = getattr(transcript, "language_code", None)
        return [
            TranscriptFragment(
                text=snippet.text,
                offset=snippet.start,
                duration=snippet.duration,
                lang=lang,
            )
            for snippet in transcript
        ]

    async def fetch(self, video_id: str) -> list[TranscriptFragment]:
        # youtube-transcript-api is synchronous
        return await asyncio.to_thread(self._fetch, video_id)


def fragments_from_fallback_payload(payload: Any) -> list[TranscriptFragment]:
    """Transform the fallback API response into transcript fragments.

    The API answers with a list of per-video payloads; only the first is used.
    Its per-item language is unreliable, so every fragment is tagged ``"en"``.
    """
    if not isinstance(payload, list) or not payload:
        return []

    video = payload[0]
    if not isinstance(video, dict) or not video.get("transcription"):
        return []

    fragments: list[TranscriptFragment] = []
    for item in video["transcription"]:
        if not isinstance(item, dict) or not isinstance(item.get("subtitle"), str):
            logger.warning("Skipping fallback transcript item without subtitle text: %r", item)
            continue
        try:
            fragments.append(
                TranscriptFragment(
                    text=item["subtitle"],
                    offset=float(item["start"]),
                    duration=float(item["dur"]),
                    lang="en",
                )
            )
        except (KeyError, TypeError, ValueError):
            logger.warning("Skipping malformed fallback transcript item: %r", item)
    return fragments


class RapidApiTranscriptProvider:
    """Fallback provider backed by the RapidAPI youtube-transcriptor service."""

    def __init__(
        self,
        api_key: str,
        host: str = "youtube-transcriptor.p.rapidapi.com",
        lang: str = "en",
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.api_key = api_key
        self.host = host
        self.lang = lang
        self.http_client = http_client
        self.timeout = timeout

    async def fetch(self, video_id: str) -> list[TranscriptFragment]:
        url = f"https://{self.host}/transcript"
        params = {"video_id": video_id, "lang": self.lang}
        headers = {"x-rapidapi-key": self.api_key, "x-rapidapi-host": self.host}

        if self.http_client is not None:
            response = await self.http_client.get(url, params=params, headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=headers)

        response.raise_for_status()
        return fragments_from_fallback_payload(response.json())


class TranscriptSource:
    """Fetch fragments from the primary provider, falling back on failure.

    Provider errors are logged and never propagate; when neither provider
    returns fragments the result is ``None``.
    """

    def __init__(
        self,
        primary: TranscriptProvider,
        fallback: TranscriptProvider | None = None,
    ) -> None:
        self.primary = primary
        self.fallback = fallback

    async def _attempt(
        self, provider: TranscriptProvider, video_id: str, name: str
    ) -> list[TranscriptFragment]:
        try:
            fragments = await provider.fetch(video_id)
        except Exception:
            logger.exception("%s transcript provider failed for %s", name, video_id)
            return []
        if not fragments:
            logger.info("%s transcript provider returned no data for %s", name, video_id)
            return []
        logger.info(
            "Fetched %d transcript fragments for %s from %s provider",
            len(fragments),
            video_id,
            name,
        )
        return fragments

    async def fetch(self, video_id: str) -> TranscriptResult | None:
        fragments = await self._attempt(self.primary, video_id, PRIMARY)
        if fragments:
            return TranscriptResult(fragments=fragments, source=PRIMARY)

        if self.fallback is None:
            return None

        logger.info("Trying fallback transcript provider for %s", video_id)
        fragments = await self._attempt(self.fallback, video_id, FALLBACK)
        if fragments:
            return TranscriptResult(fragments=fragments, source=FALLBACK)

        return None
