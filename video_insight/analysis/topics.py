"""Claude-powered topic outline of a video transcript."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

from anthropic import AsyncAnthropic

from video_insight.errors import AnalysisError
from video_insight.transcripts.models import FormattedSentence

logger = logging.getLogger(__name__)

TOPICS_TOOL_NAME = "store_topics"

# Tool definition for Claude structured output
TOPICS_TOOL: dict[str, Any] = {
    "name": TOPICS_TOOL_NAME,
    "description": (
        "Store the sequential topic outline of a video transcript. "
        "Call this once with every high-level topic."
    ),
    "input_schema": {
        "type": "object",
        "properties": {
            "topics": {
                "type": "array",
                "description": "Main topics in the order they are discussed.",
                "items": {
                    "type": "object",
                    "properties": {
                        "topic": {
                            "type": "string",
                            "description": "Short title for the topic.",
                        },
                        "timestamp": {
                            "type": "string",
                            "description": "When the topic starts, as HH:MM:SS.",
                        },
                    },
                    "required": ["topic", "timestamp"],
                },
            },
        },
        "required": ["topics"],
    },
}

SYSTEM_PROMPT = (
    "You analyse video transcripts. Given a transcript as a list of timestamped "
    "sentences, produce a breakdown of the main topics discussed.\n\n"
    "- Topics must be in the order they are discussed.\n"
    "- Keep topics broad enough to cover the main themes, not minor details.\n"
    "- Use the formatted_start_time of the sentence where each topic begins "
    "as its HH:MM:SS timestamp.\n\n"
    f"Use the {TOPICS_TOOL_NAME} tool to return your results."
)


@dataclass(frozen=True)
class Topic:
    topic: str
    timestamp: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _parse_tool_response(response: Any) -> list[Topic]:
    """Parse the Claude tool_use response into a list of topics.

    Raises:
        AnalysisError: No tool call, or its input has no ``topics`` list.
    """
    for block in response.content:
        if block.type != "tool_use" or block.name != TOPICS_TOOL_NAME:
            continue

        data = block.input
        if isinstance(data, str):
            try:
                data = json.loads(data)
            except json.JSONDecodeError as exc:
                raise AnalysisError("Invalid response format from topic analysis") from exc

        entries = data.get("topics") if isinstance(data, dict) else None
        if not isinstance(entries, list):
            raise AnalysisError("Invalid response format from topic analysis")

        topics: list[Topic] = []
        for entry in entries:
            if not isinstance(entry, dict):
                continue
            title = entry.get("topic")
            timestamp = entry.get("timestamp")
            if isinstance(title, str) and title.strip() and isinstance(timestamp, str):
                topics.append(Topic(topic=title.strip(), timestamp=timestamp.strip()))
        return topics

    raise AnalysisError("Topic analysis returned no structured result")


class TopicSummarizer:
    """Derive a sequential topic outline from formatted sentences."""

    def __init__(
        self,
        client: AsyncAnthropic,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 4096,
    ) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def summarize(self, sentences: Sequence[FormattedSentence]) -> list[Topic]:
        if not sentences:
            return []

        transcript = json.dumps([s.to_dict() for s in sentences], indent=2)
        logger.info("Generating topic outline for %d sentences", len(sentences))
        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=SYSTEM_PROMPT,
                tools=[TOPICS_TOOL],
                tool_choice={"type": "tool", "name": TOPICS_TOOL_NAME},
                messages=[
                    {
                        "role": "user",
                        "content": (
                            "Break down the main topics of this video transcript:\n\n"
                            f"<transcript>\n{transcript}\n</transcript>"
                        ),
                    }
                ],
            )
        except Exception as exc:
            logger.exception("Topic analysis call failed")
            raise AnalysisError("Failed to generate AI analysis of video content") from exc

        topics = _parse_tool_response(response)
        logger.info("Generated %d topics", len(topics))
        return topics
