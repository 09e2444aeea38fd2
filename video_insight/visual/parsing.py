"""Recover JSON objects from generative model output.

Models asked for "JSON only" still wrap answers in markdown fences, leave
trailing commas, drop a closing brace or use single quotes. Each repair is a
pure string function that leaves double-quoted string literals alone;
:func:`parse_model_json` applies them one at a time, cheapest first, and
reports how far it had to go.
"""

from __future__ import annotations

import json
import re
from collections.abc import Iterator
from dataclasses import dataclass
from enum import StrEnum
from typing import Any

# A complete double-quoted JSON string, matched first so repairs skip its contents
_STRING = r'"(?:[^"\\]|\\.)*"'

_OPENING_FENCE_RE = re.compile(r"^\s*```[A-Za-z]*[ \t]*\n?")
_CLOSING_FENCE_RE = re.compile(r"\n?[ \t]*```\s*$")
_TRAILING_COMMA_RE = re.compile(rf"({_STRING})|,\s*([}}\]])")
# A "description" string followed directly by "]": the object's "}" is missing
_TRUNCATED_DESCRIPTION_RE = re.compile(rf'("description"\s*:\s*{_STRING})\s*\]')
_UNQUOTED_KEY_RE = re.compile(rf"({_STRING})|([{{,]\s*)([A-Za-z_][A-Za-z0-9_]*)(\s*:)")
_SINGLE_QUOTED_KEY_RE = re.compile(rf"({_STRING})|'([A-Za-z_][A-Za-z0-9_]*)'(\s*:)")
_SINGLE_QUOTED_VALUE_RE = re.compile(rf"({_STRING})|(:\s*)'((?:[^'\\]|\\.)*)'")
_LARGEST_OBJECT_RE = re.compile(r"\{.*\}", re.DOTALL)


class ParseStatus(StrEnum):
    """How a model response was turned into JSON."""

    OK = "ok"  # parsed as-is
    RECOVERED = "recovered"  # parsed after cleaning / object extraction
    UNRECOVERABLE = "unrecoverable"


@dataclass(frozen=True)
class ParseResult:
    status: ParseStatus
    value: Any = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.status is not ParseStatus.UNRECOVERABLE


def strip_code_fences(text: str) -> str:
    """Remove a surrounding markdown code fence (```json ... ```)."""
    text = _OPENING_FENCE_RE.sub("", text, count=1)
    return _CLOSING_FENCE_RE.sub("", text, count=1)


def remove_trailing_commas(text: str) -> str:
    def _drop(match: re.Match[str]) -> str:
        return match.group(1) or match.group(2)

    return _TRAILING_COMMA_RE.sub(_drop, text)


def close_truncated_descriptions(text: str) -> str:
    """Insert the ``}`` missing between a description value and ``]``."""
    return _TRUNCATED_DESCRIPTION_RE.sub(r"\1}]", text)


def quote_unquoted_keys(text: str) -> str:
    def _quote(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(1)
        return f'{match.group(2)}"{match.group(3)}"{match.group(4)}'

    return _UNQUOTED_KEY_RE.sub(_quote, text)


def single_to_double_quotes(text: str) -> str:
    """Convert single-quoted keys and string values to double-quoted ones."""

    def _requote_key(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(1)
        return f'"{match.group(2)}"{match.group(3)}'

    def _requote_value(match: re.Match[str]) -> str:
        if match.group(1):
            return match.group(1)
        inner = match.group(3).replace("\\'", "'").replace('"', '\\"')
        return f'{match.group(2)}"{inner}"'

    text = _SINGLE_QUOTED_KEY_RE.sub(_requote_key, text)
    return _SINGLE_QUOTED_VALUE_RE.sub(_requote_value, text)


# Order matters: the later repairs rewrite more of the text.
REPAIRS = (
    strip_code_fences,
    remove_trailing_commas,
    close_truncated_descriptions,
    quote_unquoted_keys,
    single_to_double_quotes,
)


def repair_stages(text: str) -> Iterator[str]:
    """Yield *text* after each repair in :data:`REPAIRS`, cumulatively."""
    text = text.strip()
    for repair in REPAIRS:
        text = repair(text).strip()
        yield text


def extract_largest_object(text: str) -> str | None:
    """Greedy match from the first ``{`` to the last ``}``."""
    match = _LARGEST_OBJECT_RE.search(text)
    return match.group(0) if match else None


def _try_loads(text: str) -> tuple[bool, Any, str | None]:
    try:
        return True, json.loads(text), None
    except (json.JSONDecodeError, ValueError) as exc:
        return False, None, str(exc)


def _loads_after_repairs(text: str) -> tuple[bool, Any]:
    for stage in repair_stages(text):
        ok, value, _ = _try_loads(stage)
        if ok:
            return True, value
    return False, None


def parse_model_json(text: str) -> ParseResult:
    """Parse model output, escalating through the repair stages.

    1. Direct ``json.loads``.
    2. ``json.loads`` after each successive repair, stopping at the first
       that parses.
    3. The same on the largest ``{...}`` substring.
    """
    ok, value, error = _try_loads(text)
    if ok:
        return ParseResult(ParseStatus.OK, value)

    ok, value = _loads_after_repairs(text)
    if ok:
        return ParseResult(ParseStatus.RECOVERED, value)

    candidate = extract_largest_object(text)
    if candidate is not None:
        ok, value = _loads_after_repairs(candidate)
        if ok:
            return ParseResult(ParseStatus.RECOVERED, value)

    return ParseResult(ParseStatus.UNRECOVERABLE, error=error)
