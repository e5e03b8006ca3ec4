"""Two-phase tracking of skill invocations.

Instrumented callers start a session before running a skill and end it
afterwards with the outcome. The tracker turns that pair of calls into a
call row and a result row in the store.

Usage:
    from skillmeter.telemetry import SessionTracker, TrackingResult

    tracker = SessionTracker()
    session_id = tracker.start_tracking("docx", "Create a report", "Word docs")
    ...
    tracker.end_tracking(session_id, TrackingResult(success_rate=1.0, turns=3))
"""

from __future__ import annotations

import uuid
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from skillmeter.config import get_exports_dir
from skillmeter.errors import UnknownSessionError
from skillmeter.io import write_json
from skillmeter.logging import get_logger
from skillmeter.telemetry.conversation import ConversationAnalysis, analyze_conversation
from skillmeter.telemetry.sessions import InMemorySessionMap, SessionMap
from skillmeter.telemetry.store import MetricsStore

_logger = get_logger("telemetry.tracker")

EXPORT_RECENT_CALLS = 50


@dataclass(frozen=True)
class TrackingResult:
    """Outcome metrics supplied when a session ends.

    Attributes:
        success_rate: Outcome in [0, 1].
        turns: Conversational exchanges consumed.
        follow_up_questions: Follow-up questions the user had to ask.
        accepted_suggestions: Suggestions the user accepted.
        user_rating: Optional rating, conventionally 1-5.
    """

    success_rate: float
    turns: int
    follow_up_questions: int = 0
    accepted_suggestions: int = 0
    user_rating: float | None = None

    @classmethod
    def from_conversation(
        cls,
        analysis: ConversationAnalysis,
        success_rate: float,
        *,
        accepted_suggestions: int = 0,
        user_rating: float | None = None,
    ) -> TrackingResult:
        """Build a result using turn and follow-up counts from a transcript."""
        return cls(
            success_rate=success_rate,
            turns=analysis.total_turns,
            follow_up_questions=analysis.follow_up_questions,
            accepted_suggestions=accepted_suggestions,
            user_rating=user_rating,
        )


class SessionTracker:
    """Bridges start/end tracking onto the metrics store."""

    def __init__(
        self,
        store: MetricsStore | None = None,
        sessions: SessionMap | None = None,
    ):
        """Initialize the tracker.

        Args:
            store: Metrics store. Defaults to the project-local database.
            sessions: Open-session map. Defaults to a process-local map.
        """
        self.store = store if store is not None else MetricsStore()
        self.sessions = sessions if sessions is not None else InMemorySessionMap()

    def start_tracking(self, skill_name: str, user_question: str, context_summary: str) -> str:
        """Start tracking a skill call.

        Args:
            skill_name: Name of the skill being called.
            user_question: The user's question.
            context_summary: Summary of the context.

        Returns:
            A fresh session ID to pass to end_tracking.
        """
        session_id = str(uuid.uuid4())
        call_id = self.store.record_call(
            skill_name=skill_name,
            session_id=session_id,
            context_summary=context_summary,
            user_question=user_question,
        )
        self.sessions.put(session_id, call_id)
        _logger.info("Started session %s for %s (call %s)", session_id, skill_name, call_id)
        return session_id

    def end_tracking(self, session_id: str, result: TrackingResult) -> None:
        """End a session and record its result.

        Args:
            session_id: ID returned by start_tracking.
            result: Outcome metrics.

        Raises:
            UnknownSessionError: If the session is not open, or its call in
                this store was not started by this session. Nothing is written.
        """
        call_id = self.sessions.get(session_id)
        if call_id is None:
            raise UnknownSessionError(session_id)

        call = self.store.get_call(call_id)
        if call is None or call.session_id != session_id:
            _logger.warning("Session %s points at call %s of another session", session_id, call_id)
            raise UnknownSessionError(session_id)

        self.store.record_result(
            call_id=call_id,
            success_rate=result.success_rate,
            turns=result.turns,
            follow_up_questions=result.follow_up_questions,
            accepted_suggestions=result.accepted_suggestions,
            user_rating=result.user_rating,
        )
        self.sessions.remove(session_id)
        _logger.info("Ended session %s (call %s)", session_id, call_id)

    def end_tracking_from_conversation(
        self,
        session_id: str,
        messages: Sequence[str],
        success_rate: float,
        *,
        accepted_suggestions: int = 0,
        user_rating: float | None = None,
    ) -> ConversationAnalysis:
        """End a session, deriving turns and follow-ups from the transcript.

        Returns:
            The conversation analysis the result was built from.
        """
        analysis = self.analyze_conversation(messages)
        self.end_tracking(
            session_id,
            TrackingResult.from_conversation(
                analysis,
                success_rate,
                accepted_suggestions=accepted_suggestions,
                user_rating=user_rating,
            ),
        )
        return analysis

    def is_open(self, session_id: str) -> bool:
        """Whether a session has been started and not yet ended."""
        return self.sessions.get(session_id) is not None

    def analyze_conversation(self, messages: Sequence[str]) -> ConversationAnalysis:
        """Analyze a conversation to extract tracking metrics."""
        return analyze_conversation(messages)

    def build_export(self, skill_name: str) -> dict[str, Any]:
        """Build the export document for a skill.

        Skills without any result export zeroed metrics and a null
        last_updated.
        """
        metrics = self.store.get_skill_metrics(skill_name)
        recent_calls = self.store.get_recent_calls(skill_name, EXPORT_RECENT_CALLS)

        export: dict[str, Any] = {
            "skill_name": skill_name,
            "exported_at": datetime.now(UTC).isoformat(),
        }
        if metrics:
            export.update(
                total_calls=metrics.total_calls,
                avg_success_rate=metrics.avg_success_rate,
                avg_rating=metrics.avg_rating,
                avg_turns=metrics.avg_turns,
                last_updated=metrics.last_updated,
            )
        else:
            export.update(
                total_calls=0,
                avg_success_rate=0,
                avg_rating=0,
                avg_turns=0,
                last_updated=None,
            )

        export["recent_calls"] = [
            {
                "timestamp": call.timestamp,
                "context_summary": call.context_summary,
                "user_question": call.user_question,
                "success_rate": call.success_rate,
                "user_rating": call.user_rating,
                "turns": call.turns,
                "follow_up_questions": call.follow_up_questions,
                "accepted_suggestions": call.accepted_suggestions,
            }
            for call in recent_calls
        ]
        return export

    def export_metrics_to_json(self, skill_name: str, output_path: Path | str | None = None) -> Path:
        """Export a skill's metrics and recent calls to a JSON file.

        Args:
            skill_name: Skill to export.
            output_path: Destination file. Defaults to exports/<skill>.json
                under the state directory.

        Returns:
            The path written.
        """
        if output_path is None:
            output_path = get_exports_dir() / f"{skill_name}.json"
        path = write_json(output_path, self.build_export(skill_name))
        _logger.info("Exported metrics for %s to %s", skill_name, path)
        return path
