"""Tests for API endpoints (no external API keys required)."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import ExitStack

import httpx
import openai
import pytest
from fastapi.testclient import TestClient

from tests.fakes import (
    VIDEO_ID,
    VIDEO_URL,
    FakeAnthropic,
    FakeEmbeddingsClient,
    FakeTranscriptProvider,
    FakeVideoModel,
    tool_response,
)
from video_insight.analysis.topics import TOPICS_TOOL_NAME
from video_insight.api.errors import to_http_exception
from video_insight.api.main import app
from video_insight.errors import (
    DescriptionsUnavailableError,
    EmbeddingError,
    IndexNotFoundError,
    InvalidInputError,
    TranscriptUnavailableError,
    UpstreamError,
)
from video_insight.pipeline import VideoInsightService, get_service

MakeService = Callable[..., VideoInsightService]


@pytest.fixture
def use_service() -> Iterator[Callable[[VideoInsightService], TestClient]]:
    """Serve *service* through the app.

    The client is entered as a context manager so every request shares one
    event loop and fire-and-forget cache writes survive between requests.
    """
    with ExitStack() as stack:

        def _use(service: VideoInsightService) -> TestClient:
            app.dependency_overrides[get_service] = lambda: service
            return stack.enter_context(TestClient(app))

        yield _use
    app.dependency_overrides.clear()


def test_health() -> None:
    response = TestClient(app).get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "healthy"}


class TestTranscriptEndpoints:
    def test_transcript(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())

        response = client.post("/api/transcript", json={"video_id": VIDEO_ID})

        assert response.status_code == 200
        body = response.json()
        assert body["video_id"] == VIDEO_ID
        assert body["source"] == "primary"
        assert body["transcript"][0] == {
            "text": "Welcome to the channel.",
            "start_time": 0.0,
            "end_time": 2.0,
            "duration": 2.0,
            "formatted_start_time": "00:00:00",
            "formatted_end_time": "00:00:02",
            "lang": "en",
        }

    def test_transcript_validation(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        assert client.post("/api/transcript", json={}).status_code == 422

    def test_transcript_not_found(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service(primary=FakeTranscriptProvider([])))

        response = client.post("/api/transcript", json={"video_id": VIDEO_ID})

        assert response.status_code == 404
        assert response.json()["detail"] == "Could not fetch transcript for this video"

    def test_invalid_video(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        response = client.post("/api/transcript", json={"video_id": "not a video"})
        assert response.status_code == 400

    def test_clear_transcript(self, make_service: MakeService, use_service) -> None:
        primary = FakeTranscriptProvider([])
        service = make_service(primary=primary)
        client = use_service(service)

        response = client.delete(f"/api/transcript/{VIDEO_ID}")

        assert response.status_code == 200
        assert response.json() == {"video_id": VIDEO_ID, "status": "cleared"}


class TestAnalysisEndpoints:
    def test_analyze(self, make_service: MakeService, use_service) -> None:
        anthropic = FakeAnthropic(
            tool_response(TOPICS_TOOL_NAME, {"topics": [{"topic": "Pasta", "timestamp": "00:00:02"}]})
        )
        client = use_service(make_service(anthropic=anthropic))

        response = client.post("/api/analyze", json={"video_url": VIDEO_URL})

        assert response.status_code == 200
        body = response.json()
        assert len(body["transcript"]) == 3
        assert body["topics"] == [{"topic": "Pasta", "timestamp": "00:00:02"}]

    def test_analyze_failure_is_bad_gateway(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service(anthropic=FakeAnthropic(error=RuntimeError("down"))))
        response = client.post("/api/analyze", json={"video_url": VIDEO_URL})
        assert response.status_code == 502

    def test_video_summary(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service(summary_model=FakeVideoModel("Three sentences.")))

        response = client.post("/api/video-analysis", json={"video_url": VIDEO_URL})

        assert response.status_code == 200
        assert response.json() == {"summary": "Three sentences."}


class TestSearchEndpoints:
    def test_build_then_search(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())

        built = client.post("/api/video-embeddings", json={"video_url": VIDEO_URL})
        assert built.status_code == 200
        assert built.json()["built"] is True
        assert built.json()["count"] == 3

        reused = client.post("/api/video-embeddings", json={"video_url": VIDEO_URL})
        assert reused.json()["built"] is False
        assert "cached" in reused.json()["message"]

        response = client.post("/api/video-search", json={"video_url": VIDEO_URL, "query": "code"})
        assert response.status_code == 200
        body = response.json()
        assert body["count"] == 1
        assert body["results"][0]["timestamp"] == "01:00"
        assert body["results"][0]["video_id"] == VIDEO_ID

    def test_search_without_index(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        response = client.post("/api/video-search", json={"video_url": VIDEO_URL, "query": "cat"})
        assert response.status_code == 404

    def test_search_empty_query(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        response = client.post("/api/video-search", json={"video_url": VIDEO_URL, "query": ""})
        assert response.status_code == 400

    def test_search_rejects_bad_limits(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        response = client.post(
            "/api/video-search", json={"video_url": VIDEO_URL, "query": "cat", "max_results": 0}
        )
        assert response.status_code == 422


class TestChatEndpoint:
    def test_chat(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())

        response = client.post(
            "/api/video-chat",
            json={
                "video_id": VIDEO_ID,
                "question": "What do they cook?",
                "chat_history": [{"role": "user", "content": "Hi"}],
            },
        )

        assert response.status_code == 200
        assert response.json() == {"answer": "It is about pasta [00:00:02]."}

    def test_chat_rejects_unknown_role(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        response = client.post(
            "/api/video-chat",
            json={
                "video_id": VIDEO_ID,
                "question": "Q?",
                "chat_history": [{"role": "system", "content": "x"}],
            },
        )
        assert response.status_code == 422

    def test_chat_empty_question(self, make_service: MakeService, use_service) -> None:
        client = use_service(make_service())
        response = client.post("/api/video-chat", json={"video_id": VIDEO_ID, "question": ""})
        assert response.status_code == 400


class TestErrorMapping:
    @pytest.mark.parametrize(
        ("error", "status"),
        [
            (InvalidInputError("bad"), 400),
            (TranscriptUnavailableError("none"), 404),
            (DescriptionsUnavailableError("none"), 404),
            (IndexNotFoundError("none"), 404),
            (UpstreamError("down"), 502),
            (EmbeddingError("down"), 502),
        ],
    )
    def test_status_codes(self, error: Exception, status: int) -> None:
        exc = to_http_exception(error)  # type: ignore[arg-type]
        assert exc.status_code == status
        assert exc.detail == str(error)

    def test_rate_limit_maps_to_429(self) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        cause = openai.RateLimitError(
            "slow down", response=httpx.Response(429, request=request), body=None
        )
        error = EmbeddingError("Failed to generate embeddings")
        error.__cause__ = cause

        assert to_http_exception(error).status_code == 429

    def test_rate_limited_index_build(self, make_service: MakeService, use_service) -> None:
        request = httpx.Request("POST", "https://api.openai.com/v1/embeddings")
        rate_limited = openai.RateLimitError(
            "slow down", response=httpx.Response(429, request=request), body=None
        )
        service = make_service()
        service.index.engine.client = FakeEmbeddingsClient(failures=100, error=rate_limited)
        client = use_service(service)

        response = client.post("/api/video-embeddings", json={"video_url": VIDEO_URL})

        assert response.status_code == 429
