"""Timestamped visual descriptions of a video, generated by Gemini.

The model watches the video (passed by URL as file data) and returns one
description roughly every ``interval_seconds``. Responses are parsed with the
staged recovery in :mod:`video_insight.visual.parsing`, validated entry by
entry and cached per video, interval and time range.
"""

from __future__ import annotations

import logging
from typing import Any, Protocol

from video_insight.cache.cache import ContentCache, descriptions_key
from video_insight.errors import InvalidInputError, UpstreamError
from video_insight.timestamps import parse_timestamp, seconds_to_timestamp
from video_insight.video_ids import extract_video_id, watch_url
from video_insight.visual.models import VisualDescription
from video_insight.visual.parsing import ParseStatus, parse_model_json

logger = logging.getLogger(__name__)

DEFAULT_INTERVAL_SECONDS = 30
DEFAULT_CHUNK_MINUTES = 10

FALLBACK_DESCRIPTION = "Visual descriptions could not be parsed from the model response."

_PROMPT_TEMPLATE = """\
You are analyzing a YouTube video to extract visual descriptions at regular intervals.
{scope}
Provide one visual description approximately every {interval} seconds.
Focus on:
- Main visual elements, objects, people, scenes
- Actions taking place
- Text or graphics displayed on screen
- Setting/environment
- Important visual changes or transitions

Return ONLY a single JSON object with this structure, no markdown and no explanation:
{{
  "descriptions": [
    {{
      "timestamp": "MM:SS or HH:MM:SS",
      "description": "Detailed visual description of what's happening at this moment"
    }}
  ]
}}

Make the descriptions detailed enough for someone to understand the visual content \
without seeing the video. Focus on substantive visual content and avoid describing \
every minor detail."""

_WHOLE_VIDEO_SCOPE = "Cover the whole video from start to finish."

_RANGE_SCOPE = """\
Only describe the segment of the video from {start} to {end}.
Give timestamps relative to the start of that segment (its first moment is 00:00)."""

_SUMMARY_PROMPT = "Please summarize the video in 3 sentences."


class VideoModel(Protocol):
    """The subset of ``google.generativeai.GenerativeModel`` used here."""

    async def generate_content_async(self, contents: Any) -> Any: ...


def build_prompt(
    interval_seconds: int,
    start_seconds: int | None = None,
    end_seconds: int | None = None,
) -> str:
    if start_seconds is None or end_seconds is None:
        scope = _WHOLE_VIDEO_SCOPE
    else:
        scope = _RANGE_SCOPE.format(
            start=seconds_to_timestamp(start_seconds),
            end=seconds_to_timestamp(end_seconds),
        )
    return _PROMPT_TEMPLATE.format(scope=scope, interval=interval_seconds)


def fallback_descriptions(interval_seconds: int, offset_seconds: int = 0) -> list[VisualDescription]:
    """Single stub entry returned when the model response is unparseable."""
    return [
        VisualDescription(
            timestamp=seconds_to_timestamp(offset_seconds),
            description=FALLBACK_DESCRIPTION,
            start_time=float(offset_seconds),
            end_time=float(offset_seconds + interval_seconds),
        )
    ]


def descriptions_from_payload(
    payload: Any,
    interval_seconds: int,
    offset_seconds: int | None = None,
) -> list[VisualDescription]:
    """Validate parsed model output and derive start/end times.

    Entries without a non-empty ``timestamp`` and ``description`` string are
    dropped. With *offset_seconds* (ranged extraction) model timestamps are
    relative to the range start; they are shifted and re-rendered.
    """
    if isinstance(payload, dict):
        entries = payload.get("descriptions")
    else:
        entries = payload
    if not isinstance(entries, list):
        return []

    descriptions: list[VisualDescription] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        timestamp = entry.get("timestamp")
        description = entry.get("description")
        if not isinstance(timestamp, str) or not timestamp.strip():
            continue
        if not isinstance(description, str) or not description.strip():
            continue

        start_time = parse_timestamp(timestamp)
        if offset_seconds is not None:
            start_time += offset_seconds
            timestamp = seconds_to_timestamp(start_time)

        descriptions.append(
            VisualDescription(
                timestamp=timestamp.strip(),
                description=description.strip(),
                start_time=start_time,
                end_time=start_time + interval_seconds,
            )
        )

    dropped = len(entries) - len(descriptions)
    if dropped:
        logger.warning("Dropped %d invalid description entries", dropped)
    return descriptions


def _video_part(video_url: str) -> dict[str, Any]:
    return {"file_data": {"file_uri": video_url, "mime_type": "video/mp4"}}


class DescriptionExtractor:
    """Extract and cache visual descriptions for a video."""

    def __init__(
        self,
        model: VideoModel,
        cache: ContentCache,
        summary_model: VideoModel | None = None,
        chunk_minutes: int = DEFAULT_CHUNK_MINUTES,
    ) -> None:
        self.model = model
        self.cache = cache
        self.chunk_minutes = chunk_minutes
        # The description model answers in JSON mode; summaries want prose.
        self.summary_model = summary_model or model

    async def _generate(self, video_url: str, prompt: str, model: VideoModel | None = None) -> str:
        model = model or self.model
        try:
            response = await model.generate_content_async([_video_part(video_url), prompt])
            return str(response.text)
        except Exception as exc:
            logger.exception("Video model call failed for %s", video_url)
            raise UpstreamError("The video model could not process this video") from exc

    async def _cached(self, key: str) -> list[VisualDescription] | None:
        cached = await self.cache.get(key)
        if not cached:
            return None
        try:
            descriptions = [VisualDescription.from_dict(d) for d in cached]
        except (KeyError, TypeError, ValueError):
            logger.warning("Ignoring malformed cached descriptions at %s", key)
            return None
        logger.info("Using %d cached descriptions from %s", len(descriptions), key)
        return descriptions

    async def _run(
        self,
        video_url: str,
        interval_seconds: int,
        start_seconds: int | None = None,
        end_seconds: int | None = None,
    ) -> list[VisualDescription]:
        video_id = extract_video_id(video_url)
        if video_id is None:
            raise InvalidInputError("Invalid YouTube URL provided")
        video_url = watch_url(video_id)
        if interval_seconds <= 0:
            raise InvalidInputError("Interval must be a positive number of seconds")

        key = descriptions_key(video_id, interval_seconds, start_seconds, end_seconds)
        cached = await self._cached(key)
        if cached is not None:
            return cached

        logger.info(
            "Extracting visual descriptions for %s (interval=%ss, range=%s-%s)",
            video_id,
            interval_seconds,
            start_seconds,
            end_seconds,
        )
        text = await self._generate(
            video_url, build_prompt(interval_seconds, start_seconds, end_seconds)
        )

        result = parse_model_json(text)
        if result.status is ParseStatus.UNRECOVERABLE:
            logger.error("Unparseable description response for %s: %s", video_id, result.error)
            return fallback_descriptions(interval_seconds, start_seconds or 0)
        if result.status is ParseStatus.RECOVERED:
            logger.warning("Recovered malformed description JSON for %s", video_id)

        descriptions = descriptions_from_payload(result.value, interval_seconds, start_seconds)
        logger.info("Extracted %d visual descriptions for %s", len(descriptions), video_id)

        if descriptions:
            await self.cache.set(key, [d.to_dict() for d in descriptions])
        return descriptions

    async def extract(
        self, video_url: str, interval_seconds: int = DEFAULT_INTERVAL_SECONDS
    ) -> list[VisualDescription]:
        """Describe the whole video in a single model call."""
        return await self._run(video_url, interval_seconds)

    async def extract_range(
        self,
        video_url: str,
        start_seconds: int,
        end_seconds: int,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
    ) -> list[VisualDescription]:
        """Describe ``[start_seconds, end_seconds)``; times are absolute."""
        if start_seconds < 0 or end_seconds <= start_seconds:
            raise InvalidInputError("Time range must satisfy 0 <= start < end")
        return await self._run(video_url, interval_seconds, start_seconds, end_seconds)

    async def extract_chunked(
        self,
        video_url: str,
        interval_seconds: int = DEFAULT_INTERVAL_SECONDS,
        chunk_minutes: int | None = None,
    ) -> list[VisualDescription]:
        """Chunked extraction for long videos.

        Only the first ``chunk_minutes`` window is processed; later chunks are
        not requested.
        """
        chunk_seconds = (chunk_minutes or self.chunk_minutes) * 60
        logger.info("Chunked extraction covers only the first %d seconds", chunk_seconds)
        return await self.extract_range(video_url, 0, chunk_seconds, interval_seconds)

    async def summarize(self, video_url: str) -> str:
        """Short three-sentence summary of the video."""
        video_id = extract_video_id(video_url)
        if video_id is None:
            raise InvalidInputError("Invalid YouTube URL provided")
        text = await self._generate(watch_url(video_id), _SUMMARY_PROMPT, self.summary_model)
        return text.strip()
