"""Composite performance scoring for skills.

A skill's score is a 0-100 blend of three components computed over its
most recent results:

    success rate       40 points   mean(success_rate) * 40
    user satisfaction  35 points   mean(rating, unrated = 3.5) * 7
    efficiency         25 points   max(0, 1 - (mean(turns) - 1) / 10) * 25

Trend compares the mean success rate of the newer half of the recent
window with the older half. The scorer keeps no state; every call reads
the store afresh.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from statistics import fmean
from typing import Any, Literal

from skillmeter.logging import get_logger
from skillmeter.outcome import Absent, Present
from skillmeter.telemetry.store import MetricsStore, RecentCall

_logger = get_logger("analysis.scorer")

Trend = Literal["improving", "stable", "declining"]

SCORE_WINDOW = 30
TREND_WINDOW = 20
FAILURE_WINDOW = 20

# Fewer closed calls than this in the trend window reads as "stable".
MIN_TREND_POINTS = 5
TREND_THRESHOLD = 0.1

DEFAULT_RATING = 3.5
SUCCESS_WEIGHT = 40
SATISFACTION_WEIGHT = 7
EFFICIENCY_WEIGHT = 25

FAILURE_THRESHOLD = 0.5

PATTERN_HIGH_TURNS = "High average conversation turns indicate complexity or unclear responses"
PATTERN_FOLLOW_UPS = "Excessive follow-up questions suggest initial responses are incomplete"
PATTERN_LOW_ACCEPTANCE = "Low suggestion acceptance rate indicates recommendations are not helpful"
PATTERN_POOR_RATINGS = "Poor user ratings correlate with failures, indicating user dissatisfaction"
PATTERN_VERY_LOW_SUCCESS = "Very low success rate suggests fundamental issues with skill implementation"
PATTERN_UNCLEAR = "Multiple failures detected but no clear pattern - may need qualitative analysis"


@dataclass(frozen=True)
class SkillScore:
    """Composite score for one skill.

    Attributes:
        skill_name: Skill the score belongs to.
        overall_score: Rounded sum of the three component scores.
        success_rate: Mean success rate over the scoring window.
        user_satisfaction: Mean rating, unrated results counted as 3.5.
        efficiency: Turn-based efficiency, rounded to 2 decimals.
        trend: Direction of recent success rate.
        success_score: Success component (0-40).
        satisfaction_score: Satisfaction component (0-35).
        efficiency_score: Efficiency component (0-25).
    """

    skill_name: str
    overall_score: int
    success_rate: float
    user_satisfaction: float
    efficiency: float
    trend: Trend
    success_score: float = 0.0
    satisfaction_score: float = 0.0
    efficiency_score: float = 0.0

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return asdict(self)


def _rating(call: RecentCall) -> float:
    return call.user_rating if call.user_rating is not None else DEFAULT_RATING


class SkillScorer:
    """Scores, ranks, and diagnoses skills from stored results."""

    def __init__(self, store: MetricsStore):
        self.store = store

    def _closed_calls(self, skill_name: str, limit: int) -> list[RecentCall]:
        """Recent calls that have a result, newest first."""
        return [c for c in self.store.get_recent_calls(skill_name, limit) if c.has_result]

    def calculate_score(self, skill_name: str) -> SkillScore | None:
        """Calculate the composite score for a skill.

        Args:
            skill_name: Skill to score.

        Returns:
            The score, or None if the skill has no closed calls.
        """
        calls = self._closed_calls(skill_name, SCORE_WINDOW)
        if not calls:
            return None

        success_rate = fmean(c.success_rate for c in calls)
        satisfaction = fmean(_rating(c) for c in calls)
        avg_turns = fmean(c.turns for c in calls)
        # Only the lower bound is clamped: mean turns below 1 lifts efficiency above 1.
        efficiency = max(0.0, 1 - (avg_turns - 1) / 10)

        success_score = success_rate * SUCCESS_WEIGHT
        satisfaction_score = satisfaction * SATISFACTION_WEIGHT
        efficiency_score = efficiency * EFFICIENCY_WEIGHT

        return SkillScore(
            skill_name=skill_name,
            overall_score=round(success_score + satisfaction_score + efficiency_score),
            success_rate=success_rate,
            user_satisfaction=satisfaction,
            efficiency=round(efficiency, 2),
            trend=self.analyze_trend(skill_name),
            success_score=success_score,
            satisfaction_score=satisfaction_score,
            efficiency_score=efficiency_score,
        )

    def evaluate(self, skill_name: str) -> Present[SkillScore] | Absent:
        """Score a skill, reporting missing data as Absent rather than None."""
        score = self.calculate_score(skill_name)
        if score is None:
            return Absent(f"No completed calls recorded for {skill_name}")
        return Present(score)

    def analyze_trend(self, skill_name: str) -> Trend:
        """Classify the recent success-rate direction of a skill.

        The window is split at floor(n/2): the newer calls form the first
        half. A difference of exactly +/-0.1 is stable.
        """
        calls = self._closed_calls(skill_name, TREND_WINDOW)
        if len(calls) < MIN_TREND_POINTS:
            return "stable"

        midpoint = len(calls) // 2
        recent_avg = fmean(c.success_rate for c in calls[:midpoint])
        older_avg = fmean(c.success_rate for c in calls[midpoint:])
        diff = recent_avg - older_avg

        if diff > TREND_THRESHOLD:
            return "improving"
        if diff < -TREND_THRESHOLD:
            return "declining"
        return "stable"

    def get_best_skills(self, limit: int = 3, context: str = "") -> list[SkillScore]:
        """Rank skills by overall score.

        Args:
            limit: Maximum number of skills to return.
            context: Reserved for context-aware filtering; unused.

        Returns:
            Scores in descending order; ties keep skill-name order.
        """
        scores = [self.calculate_score(m.skill_name) for m in self.store.get_all_metrics()]
        ranked = sorted(
            (s for s in scores if s is not None),
            key=lambda s: s.overall_score,
            reverse=True,
        )
        _logger.debug("Ranked %d scored skills", len(ranked))
        return ranked[:limit]

    def analyze_failure_patterns(self, skill_name: str) -> list[str]:
        """Describe what the recent failures of a skill have in common.

        A failure is a closed call with success rate below 0.5.

        Returns:
            Findings, empty when there are no failures.
        """
        failures = [c for c in self._closed_calls(skill_name, FAILURE_WINDOW) if c.success_rate < FAILURE_THRESHOLD]
        if not failures:
            return []

        patterns: list[str] = []
        if fmean(c.turns for c in failures) > 7:
            patterns.append(PATTERN_HIGH_TURNS)
        if fmean(c.follow_up_questions for c in failures) > 3:
            patterns.append(PATTERN_FOLLOW_UPS)
        if fmean(c.accepted_suggestions for c in failures) < 1:
            patterns.append(PATTERN_LOW_ACCEPTANCE)
        if fmean(_rating(c) for c in failures) < 2.5:
            patterns.append(PATTERN_POOR_RATINGS)
        if fmean(c.success_rate for c in failures) < 0.3:
            patterns.append(PATTERN_VERY_LOW_SUCCESS)

        if not patterns:
            patterns.append(PATTERN_UNCLEAR)
        return patterns
