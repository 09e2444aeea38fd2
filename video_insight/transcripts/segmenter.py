"""Rebuild complete, time-bounded sentences from raw transcript fragments.

Providers deliver captions as irregular word/phrase chunks, each with a start
offset and duration. Sentences are accumulated across fragments and split on
terminal punctuation; a boundary that falls inside a fragment is timestamped
by linear interpolation over the fragment's characters.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from video_insight.transcripts.models import FormattedSentence, Sentence, TranscriptFragment

logger = logging.getLogger(__name__)

DEFAULT_LANG = "en"

# Applied in order, so "&amp;#39;" decodes all the way to "'"
_HTML_ENTITIES: tuple[tuple[str, str], ...] = (
    ("&amp;", "&"),
    ("&#39;", "'"),
    ("&lt;", "<"),
    ("&gt;", ">"),
    ("&quot;", '"'),
)

_SENTENCE_ENDERS = re.compile(r"[.!?]+")
_SENTENCE_START = re.compile(r"[A-Z0-9]")

FragmentLike = TranscriptFragment | Mapping[str, Any]


def decode_html_entities(text: str) -> str:
    """Decode the HTML entities caption providers leave in fragment text."""
    for entity, char in _HTML_ENTITIES:
        text = text.replace(entity, char)
    return text


def find_sentence_boundaries(text: str) -> list[int]:
    """Return character positions just after each sentence-ending punctuation run.

    A run of ``.``, ``!`` or ``?`` ends a sentence when nothing follows it or the
    following text starts with an uppercase letter or digit. Lowercase
    continuations ("e.g. this") are not split.
    """
    boundaries: list[int] = []
    for match in _SENTENCE_ENDERS.finditer(text):
        after = text[match.end() :].strip()
        if not after or _SENTENCE_START.match(after):
            boundaries.append(match.end())
    return boundaries


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value)


def _coerce_fragment(item: Any, index: int) -> TranscriptFragment | None:
    """Validate one raw fragment; invalid ones are logged and dropped."""
    if isinstance(item, TranscriptFragment):
        text, offset, duration, lang = item.text, item.offset, item.duration, item.lang
    elif isinstance(item, Mapping):
        text = item.get("text")
        offset = item.get("offset")
        duration = item.get("duration")
        lang = item.get("lang")
    else:
        logger.error("Invalid transcript item at index %d: %r", index, item)
        return None

    if not isinstance(text, str):
        logger.error("Invalid text at index %d: %r", index, text)
        return None
    if not _is_number(offset) or not _is_number(duration):
        logger.error(
            "Invalid timing at index %d: offset=%r duration=%r", index, offset, duration
        )
        return None

    return TranscriptFragment(
        text=text,
        offset=float(offset),
        duration=float(duration),
        lang=lang if isinstance(lang, str) and lang else None,
    )


def _interpolate(fragment: TranscriptFragment, position: int, length: int) -> float:
    """Estimate the time of a character position within a fragment."""
    if length == 0:
        return fragment.offset
    return fragment.offset + fragment.duration * (position / length)


def _make_sentence(text: str, start_time: float, end_time: float, lang: str) -> Sentence:
    end_time = max(end_time, start_time)
    return Sentence(
        text=text.strip(),
        start_time=start_time,
        end_time=end_time,
        duration=end_time - start_time,
        lang=lang,
    )


def segment_sentences(fragments: Sequence[FragmentLike]) -> list[Sentence]:
    """Combine transcript fragments into complete sentences.

    Args:
        fragments: Fragments in chronological order, either
            :class:`TranscriptFragment` instances or ``{"text", "offset",
            "duration", "lang"}`` mappings (e.g. straight from the cache).

    Returns:
        Sentences in the order their text appeared. A sentence spanning several
        fragments starts at the fragment where accumulation began and ends where
        its terminal punctuation was found.
    """
    if not fragments:
        return []

    valid: list[TranscriptFragment] = []
    for index, item in enumerate(fragments):
        fragment = _coerce_fragment(item, index)
        if fragment is not None:
            valid.append(fragment)

    if not valid:
        logger.error("No valid transcript items found after validation")
        return []
    if len(valid) != len(fragments):
        logger.warning("Filtered %d invalid transcript items", len(fragments) - len(valid))

    sentences: list[Sentence] = []
    current = ""
    start_time = 0.0
    is_open = False

    for fragment in valid:
        text = decode_html_entities(fragment.text).strip()
        lang = fragment.lang or DEFAULT_LANG

        if not is_open:
            start_time = fragment.offset
            is_open = True

        if current and not current.endswith(" ") and not text.startswith(" "):
            current += " "

        last = 0
        for boundary in find_sentence_boundaries(text):
            current += text[last:boundary]
            end_time = _interpolate(fragment, boundary, len(text))
            if current.strip():
                sentences.append(_make_sentence(current, start_time, end_time, lang))

            current = ""
            last = boundary
            # Leftover text opens the next sentence at the boundary's time
            if text[last:].strip():
                start_time = end_time
                is_open = True
            else:
                is_open = False

        current += text[last:].lstrip()

    if is_open and current.strip():
        last_fragment = valid[-1]
        sentences.append(
            _make_sentence(
                current,
                start_time,
                last_fragment.offset + last_fragment.duration,
                last_fragment.lang or DEFAULT_LANG,
            )
        )

    return sentences


def format_timestamp(seconds: float) -> str:
    """Format seconds as ``HH:MM:SS``; fractional seconds are truncated."""
    total = math.floor(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    secs = total % 60
    return ":".join(f"{value:02d}" for value in (hours, minutes, secs))


def format_with_timestamps(fragments: Sequence[FragmentLike]) -> list[FormattedSentence]:
    """Segment fragments and attach ``HH:MM:SS`` start/end renderings."""
    return [
        FormattedSentence(
            text=s.text,
            start_time=s.start_time,
            end_time=s.end_time,
            duration=s.duration,
            lang=s.lang,
            formatted_start_time=format_timestamp(s.start_time),
            formatted_end_time=format_timestamp(s.end_time),
        )
        for s in segment_sentences(fragments)
    ]
