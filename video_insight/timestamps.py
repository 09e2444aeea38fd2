"""Conversions between ``MM:SS`` / ``HH:MM:SS`` strings and seconds."""

from __future__ import annotations

import math


def parse_timestamp(timestamp: str) -> float:
    """Convert ``MM:SS`` or ``HH:MM:SS`` to seconds.

    Any other shape (or a non-numeric part) yields ``0``.
    """
    parts = timestamp.strip().split(":")
    try:
        values = [float(p) for p in parts]
    except ValueError:
        return 0.0

    if len(values) == 2:
        minutes, seconds = values
        return minutes * 60 + seconds
    if len(values) == 3:
        hours, minutes, seconds = values
        return hours * 3600 + minutes * 60 + seconds
    return 0.0


def seconds_to_timestamp(seconds: float) -> str:
    """Render seconds as ``MM:SS``, or ``HH:MM:SS`` once past the first hour."""
    total = math.floor(seconds)
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def format_timestamp_for_display(timestamp: str) -> str:
    """Drop a redundant ``00:`` hour prefix, on both ends of an ``A-B`` range."""

    def _strip(ts: str) -> str:
        return ts[3:] if ts.startswith("00:") else ts

    if "-" in timestamp:
        start, end = timestamp.split("-", 1)
        return f"{_strip(start)}-{_strip(end)}"
    return _strip(timestamp)


def video_url_at(video_id: str, timestamp: str) -> str:
    """Watch URL that starts playback at *timestamp*."""
    seconds = int(parse_timestamp(timestamp))
    return f"https://www.youtube.com/watch?v={video_id}&t={seconds}s"
