"""Data models for generated visual descriptions."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any


@dataclass(frozen=True)
class VisualDescription:
    """What is on screen around ``timestamp``.

    ``end_time`` is ``start_time`` plus the requested interval: a fixed-width
    window, not a detected scene boundary.
    """

    timestamp: str
    description: str
    start_time: float
    end_time: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> VisualDescription:
        return cls(
            timestamp=str(data["timestamp"]),
            description=str(data["description"]),
            start_time=float(data["start_time"]),
            end_time=float(data["end_time"]),
        )
