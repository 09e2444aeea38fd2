"""Data models for transcript fragments and reconstructed sentences."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class TranscriptFragment:
    """Raw provider-supplied transcript unit (offset and duration in seconds)."""

    text: str
    offset: float
    duration: float
    lang: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Sentence:
    """A complete sentence with interpolated start/end times."""

    text: str
    start_time: float
    end_time: float
    duration: float
    lang: str = "en"

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class FormattedSentence(Sentence):
    """Sentence plus ``HH:MM:SS`` renderings of its start and end."""

    formatted_start_time: str = "00:00:00"
    formatted_end_time: str = "00:00:00"


@dataclass
class TranscriptResult:
    """Fragments returned by a transcript fetch and the provider that served them."""

    fragments: list[TranscriptFragment]
    source: str  # "primary", "fallback" or "cache"
