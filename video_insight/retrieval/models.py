"""Data models for the visual search index."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class EmbeddingRecord:
    """An embedded visual description."""

    text: str
    embedding: list[float]
    timestamp: str
    video_id: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> EmbeddingRecord:
        return cls(
            text=str(data["text"]),
            embedding=[float(x) for x in data["embedding"]],
            timestamp=str(data["timestamp"]),
            video_id=str(data["video_id"]),
        )


@dataclass(frozen=True)
class SearchResult:
    text: str
    timestamp: str
    similarity: float
    video_id: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class IndexStatus:
    """Outcome of :meth:`SearchIndex.ensure_index`.

    ``built`` is False when a cached index was found and reused.
    """

    built: bool
    count: int


@dataclass(frozen=True)
class ChatMessage:
    """One prior turn of a conversation about a video."""

    role: str  # "user" or "assistant"
    content: str
