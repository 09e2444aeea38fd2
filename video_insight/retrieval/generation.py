"""Claude-powered answers grounded in a video transcript, with timestamp citations."""

from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from typing import Any

from anthropic import AsyncAnthropic
from anthropic.types import TextBlock

from video_insight.errors import InvalidInputError
from video_insight.retrieval.models import ChatMessage
from video_insight.transcripts.models import FormattedSentence

logger = logging.getLogger(__name__)

FALLBACK_ANSWER = "Sorry, I could not generate a response."

_ROLES = ("user", "assistant")

SYSTEM_PROMPT_TEMPLATE = """\
You are an assistant helping users understand a YouTube video by answering \
questions about its transcript.

<video_transcript>
{transcript}
</video_transcript>

The transcript is a list of sentences. Each has "text", "start_time" and \
"end_time" in seconds, "duration", "formatted_start_time" and \
"formatted_end_time" as HH:MM:SS, and "lang".

Rules:
- Answer ONLY from the information in the transcript.
- When you refer to something said in the video, cite it inline as [HH:MM:SS], \
or as [HH:MM:SS-HH:MM:SS] for a longer passage.
- If several sections are relevant, cite each of them.
- If the transcript does not answer the question, say so politely and mention \
what the video does cover.
- Keep answers conversational and concise."""


def build_system_prompt(sentences: Sequence[FormattedSentence]) -> str:
    transcript = json.dumps([s.to_dict() for s in sentences], indent=2)
    return SYSTEM_PROMPT_TEMPLATE.format(transcript=transcript)


def build_messages(history: Sequence[ChatMessage], question: str) -> list[dict[str, Any]]:
    """Prior turns as alternating role messages, then the new question.

    Turns with an unknown role or empty content are skipped, as are assistant
    turns before the first user turn (the conversation must open with the user).
    """
    messages: list[dict[str, Any]] = []
    for turn in history:
        if turn.role not in _ROLES or not turn.content.strip():
            continue
        if not messages and turn.role == "assistant":
            continue
        messages.append({"role": turn.role, "content": turn.content})
    messages.append({"role": "user", "content": f"Here is my question: {question}"})
    return messages


class ConversationEngine:
    """Stateless chat over a formatted transcript."""

    def __init__(
        self,
        client: AsyncAnthropic,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 1024,
    ) -> None:
        self.client = client
        self.model = model
        self.max_tokens = max_tokens

    async def answer(
        self,
        sentences: Sequence[FormattedSentence],
        history: Sequence[ChatMessage],
        question: str,
    ) -> str:
        """Answer *question* about the transcript.

        Provider failures are logged and turned into :data:`FALLBACK_ANSWER`.

        Raises:
            InvalidInputError: Empty question or empty transcript.
        """
        if not question or not question.strip():
            raise InvalidInputError("Question is required")
        if not sentences:
            raise InvalidInputError("Video transcript cannot be empty")

        messages = build_messages(history, question.strip())
        logger.info(
            "Answering question over %d sentences with %d history turns",
            len(sentences),
            len(messages) - 1,
        )

        try:
            response = await self.client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=build_system_prompt(sentences),
                messages=messages,
            )
        except Exception:
            logger.exception("Chat completion failed")
            return FALLBACK_ANSWER

        text = "".join(block.text for block in response.content if isinstance(block, TextBlock))
        if not text.strip():
            logger.warning("Chat completion returned no text")
            return FALLBACK_ANSWER
        return text.strip()
