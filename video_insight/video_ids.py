"""Content references: extract YouTube video IDs from URLs."""

from __future__ import annotations

import re

_VIDEO_URL_RE = re.compile(
    r"(?:youtube\.com/watch\?v=|youtu\.be/|youtube\.com/embed/|youtube\.com/v/"
    r"|m\.youtube\.com/watch\?v=|youtube\.com/watch\?.*&v=)([a-zA-Z0-9_-]{11})"
)
_BARE_ID_RE = re.compile(r"^[a-zA-Z0-9_-]{11}$")


def extract_video_id(url: str) -> str | None:
    """Extract the 11-character video ID from a YouTube URL.

    Supports ``watch?v=``, ``youtu.be/``, ``/embed/``, ``/v/``, mobile and
    ``watch?...&v=`` forms. A bare video ID is returned unchanged.
    """
    if not url:
        return None
    candidate = url.strip()
    if _BARE_ID_RE.match(candidate):
        return candidate
    match = _VIDEO_URL_RE.search(candidate)
    return match.group(1) if match else None


def is_valid_video_url(url: str) -> bool:
    return extract_video_id(url) is not None


def watch_url(video_id: str) -> str:
    return f"https://www.youtube.com/watch?v={video_id}"
