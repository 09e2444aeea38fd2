"""Tests for Settings, client factories and service wiring."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from video_insight import clients
from video_insight.cache.store import MemoryCacheStore, SupabaseCacheStore
from video_insight.config import Settings
from video_insight.pipeline import VideoInsightService


def make_settings(**overrides: object) -> Settings:
    return Settings(_env_file=None, **overrides)  # type: ignore[call-arg]


class TestSettings:
    def test_defaults(self, monkeypatch: pytest.MonkeyPatch) -> None:
        for name in ("EMBEDDING_DIMENSIONS", "SEARCH_MIN_SIMILARITY", "CACHE_TTL_SECONDS"):
            monkeypatch.delenv(name, raising=False)
        settings = make_settings()

        assert settings.embedding_model == "text-embedding-3-small"
        assert settings.embedding_dimensions == 512
        assert settings.embedding_max_batch_size == 100
        assert settings.embedding_max_concurrency == 3
        assert settings.embedding_max_retries == 3
        assert settings.search_min_similarity == 0.3
        assert settings.search_max_results == 10
        assert settings.description_interval_seconds == 30
        assert settings.cache_ttl_seconds == 30 * 24 * 60 * 60

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("SEARCH_MIN_SIMILARITY", "0.5")
        monkeypatch.setenv("EMBEDDING_DIMENSIONS", "256")

        settings = make_settings()

        assert settings.search_min_similarity == 0.5
        assert settings.embedding_dimensions == 256


class TestClientFactories:
    def test_memory_store_without_supabase(self) -> None:
        store = clients.make_cache_store(make_settings(supabase_url="", supabase_key=""))
        assert isinstance(store, MemoryCacheStore)

    def test_supabase_store_when_configured(self) -> None:
        settings = make_settings(supabase_url="https://x.supabase.co", supabase_key="key")
        with patch("video_insight.clients.get_supabase_client") as mock_client:
            mock_client.return_value = MagicMock()
            store = clients.make_cache_store(settings)

        assert isinstance(store, SupabaseCacheStore)
        mock_client.assert_called_once_with("https://x.supabase.co", "key")

    def test_fallback_transcripts_need_a_key(self) -> None:
        with patch("video_insight.transcripts.source.YouTubeTranscriptApi"):
            without = clients.make_transcript_source(make_settings(rapid_api_key=""))
            with_key = clients.make_transcript_source(make_settings(rapid_api_key="secret"))

        assert without.fallback is None
        assert with_key.fallback is not None

    def test_video_models(self) -> None:
        with patch("video_insight.clients.genai") as mock_genai:
            clients.make_video_models(make_settings(google_api_key="g", gemini_model="gemini-x"))

        mock_genai.configure.assert_called_once_with(api_key="g")
        first, second = mock_genai.GenerativeModel.call_args_list
        assert first.kwargs["generation_config"] == {"response_mime_type": "application/json"}
        assert second.args == ("gemini-x",)


class TestServiceWiring:
    def test_from_settings(self) -> None:
        settings = make_settings(
            openai_api_key="sk-test",
            anthropic_api_key="ak-test",
            embedding_dimensions=256,
            search_max_results=5,
            description_chunk_minutes=4,
            supabase_url="",
        )
        with (
            patch("video_insight.clients.genai"),
            patch("video_insight.transcripts.source.YouTubeTranscriptApi"),
        ):
            service = VideoInsightService.from_settings(settings)

        assert service.index.engine.dimensions == 256
        assert service.max_results == 5
        assert service.extractor.chunk_minutes == 4
        assert isinstance(service.cache.store, MemoryCacheStore)
