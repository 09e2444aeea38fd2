"""Provider clients and cache store built from :class:`Settings`."""

from __future__ import annotations

import logging

import google.generativeai as genai
from anthropic import AsyncAnthropic
from openai import AsyncOpenAI

from video_insight.cache.store import (
    CacheStore,
    MemoryCacheStore,
    SupabaseCacheStore,
    get_supabase_client,
)
from video_insight.config import Settings
from video_insight.transcripts.source import (
    RapidApiTranscriptProvider,
    TranscriptSource,
    YouTubeTranscriptProvider,
)

logger = logging.getLogger(__name__)


def make_video_models(settings: Settings) -> tuple[genai.GenerativeModel, genai.GenerativeModel]:
    """Return (description model in JSON mode, plain-text summary model)."""
    genai.configure(api_key=settings.google_api_key)  # type: ignore[attr-defined]
    description_model = genai.GenerativeModel(  # type: ignore[attr-defined]
        settings.gemini_model,
        generation_config={"response_mime_type": "application/json"},
    )
    summary_model = genai.GenerativeModel(settings.gemini_model)  # type: ignore[attr-defined]
    return description_model, summary_model


def make_openai_client(settings: Settings) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=settings.openai_api_key or None)


def make_anthropic_client(settings: Settings) -> AsyncAnthropic:
    return AsyncAnthropic(api_key=settings.anthropic_api_key or None)


def make_cache_store(settings: Settings) -> CacheStore:
    if settings.supabase_url and settings.supabase_key:
        client = get_supabase_client(settings.supabase_url, settings.supabase_key)
        return SupabaseCacheStore(client, settings.cache_table)
    logger.warning("Supabase is not configured; using a process-local cache")
    return MemoryCacheStore()


def make_transcript_source(settings: Settings) -> TranscriptSource:
    primary = YouTubeTranscriptProvider(languages=(settings.transcript_language,))
    fallback = None
    if settings.rapid_api_key:
        fallback = RapidApiTranscriptProvider(
            api_key=settings.rapid_api_key,
            host=settings.rapid_api_host,
            lang=settings.transcript_language,
        )
    else:
        logger.warning("RAPID_API_KEY is not set; transcript fallback disabled")
    return TranscriptSource(primary, fallback)
