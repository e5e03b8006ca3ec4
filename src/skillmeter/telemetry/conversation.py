"""Feature extraction from a conversation transcript.

Estimates tracking metrics (turns, follow-up questions) when an
instrumented caller has a transcript but no explicit numbers. Messages
are plain strings prefixed by speaker role, e.g. ``"User: how do I..."``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from typing import Any

USER_PREFIX = "user:"
ASSISTANT_PREFIX = "assistant:"

QUESTION_WORDS = (
    "how",
    "what",
    "where",
    "when",
    "why",
    "can",
    "could",
    "would",
    "should",
    "is",
    "are",
    "do",
    "does",
)

# Normalisers for the complexity sub-scores; each is capped at 1.
LENGTH_NORMALISER = 200
TURNS_NORMALISER = 10
QUESTIONS_NORMALISER = 5


@dataclass
class ConversationAnalysis:
    """Counts and a [0, 1] complexity estimate for one conversation."""

    total_turns: int = 0
    user_messages: int = 0
    assistant_messages: int = 0
    follow_up_questions: int = 0
    question_count: int = 0
    complexity_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return asdict(self)


def is_question(message: str) -> bool:
    """Whether a message reads as a question.

    True if it contains a question mark or any interrogative word. Words
    match as case-insensitive substrings, so "this" counts via "is".
    """
    if "?" in message:
        return True
    lowered = message.lower()
    return any(word in lowered for word in QUESTION_WORDS)


def analyze_conversation(messages: Sequence[str]) -> ConversationAnalysis:
    """Analyze a conversation to extract tracking metrics.

    Only user messages are inspected for questions. A question is also a
    follow-up unless it is the very first message of the conversation.

    Args:
        messages: Ordered messages, each prefixed by "user:" or "assistant:".

    Returns:
        Conversation analysis; all zeros for an empty conversation.
    """
    analysis = ConversationAnalysis(total_turns=len(messages))
    if not messages:
        return analysis

    total_length = 0
    for index, message in enumerate(messages):
        total_length += len(message)
        lowered = message.lower()

        if lowered.startswith(USER_PREFIX):
            analysis.user_messages += 1
            if is_question(message):
                analysis.question_count += 1
                if index > 0:
                    analysis.follow_up_questions += 1
        elif lowered.startswith(ASSISTANT_PREFIX):
            analysis.assistant_messages += 1

    avg_length = total_length / len(messages)
    from_length = min(avg_length / LENGTH_NORMALISER, 1)
    from_turns = min(len(messages) / TURNS_NORMALISER, 1)
    from_questions = min(analysis.question_count / QUESTIONS_NORMALISER, 1)

    analysis.complexity_score = round((from_length + from_turns + from_questions) / 3, 2)
    return analysis
