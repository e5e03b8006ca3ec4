"""Caller-facing guidance built on skill scores.

Pre-call checks warn before a poorly performing skill is invoked and
propose better-scoring alternatives. Reports render a skill's score,
metrics, improvement suggestions and failure patterns as Markdown.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Literal

from skillmeter.analysis.scorer import SkillScorer
from skillmeter.logging import get_logger
from skillmeter.outcome import Failed, Present
from skillmeter.telemetry.store import MetricsStore

_logger = get_logger("analysis.advisor")

SuggestionType = Literal["warning", "info", "optimization"]

MAX_ALTERNATIVES = 2
ALTERNATIVES_POOL = 3
FALLBACK_ALTERNATIVE = "Consider reviewing the available skills"

LOW_SUCCESS_RATE = 0.5
LOW_OVERALL_SCORE = 50

TREND_EMOJI = {
    "improving": "📈",
    "declining": "📉",
    "stable": "➡️",
}
UNKNOWN_TREND_EMOJI = "❓"


@dataclass
class Suggestion:
    """Advice returned by a pre-call check."""

    should_suggest: bool
    message: str | None = None
    alternatives: list[str] = field(default_factory=list)
    type: SuggestionType | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return asdict(self)


def trend_emoji(trend: str) -> str:
    """Glyph shown next to a trend in reports."""
    return TREND_EMOJI.get(trend, UNKNOWN_TREND_EMOJI)


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


class SkillAdvisor:
    """Turns scores into warnings, alternatives, and reports."""

    def __init__(self, store: MetricsStore, scorer: SkillScorer | None = None):
        self.store = store
        self.scorer = scorer if scorer is not None else SkillScorer(store)

    def check_before_call(self, skill_name: str, context: str = "") -> Suggestion:
        """Decide whether to warn before a skill is invoked.

        Checks, in order: low success rate, declining trend, low overall
        score. The first that applies wins.

        Args:
            skill_name: Skill about to be called.
            context: Reserved for context-aware alternatives; unused.

        Returns:
            Suggestion; should_suggest is False when there is no data or
            nothing to flag.
        """
        score = self.scorer.calculate_score(skill_name)
        if score is None:
            return Suggestion(should_suggest=False)

        if score.success_rate < LOW_SUCCESS_RATE:
            return Suggestion(
                should_suggest=True,
                type="warning",
                message=(
                    f'⚠️ "{skill_name}" has a low success rate ({_pct(score.success_rate)}). Consider alternatives.'
                ),
                alternatives=self.get_alternative_skills(skill_name, context),
            )

        if score.trend == "declining":
            return Suggestion(
                should_suggest=True,
                type="warning",
                message=f'📉 "{skill_name}" is showing a declining performance trend. Consider alternatives.',
                alternatives=self.get_alternative_skills(skill_name, context),
            )

        if score.overall_score < LOW_OVERALL_SCORE:
            return Suggestion(
                should_suggest=True,
                type="info",
                message=(
                    f'ℹ️ "{skill_name}" has a low overall score ({score.overall_score}/100). Better options may exist.'
                ),
                alternatives=self.get_alternative_skills(skill_name, context),
            )

        return Suggestion(should_suggest=False)

    def find_alternatives(self, skill_name: str, context: str = "") -> Present[list[str]] | Failed:
        """Look up better-scoring skills, capturing any lookup failure."""
        try:
            best = self.scorer.get_best_skills(ALTERNATIVES_POOL, context)
        except Exception as e:
            return Failed(e)

        return Present(
            [f"{s.skill_name} (score: {s.overall_score})" for s in best if s.skill_name != skill_name][
                :MAX_ALTERNATIVES
            ]
        )

    def get_alternative_skills(self, skill_name: str, context: str = "") -> list[str]:
        """Up to two alternatives annotated with their scores.

        Falls back to a generic hint if the lookup fails, so a pre-call
        check never blocks the skill it is checking.
        """
        outcome = self.find_alternatives(skill_name, context)
        if isinstance(outcome, Failed):
            _logger.warning("Alternative lookup for %s failed: %s", skill_name, outcome.message)
            return [FALLBACK_ALTERNATIVE]
        return outcome.value

    def generate_improvement_suggestions(self, skill_name: str) -> list[str]:
        """Threshold-based suggestions followed by unique failure patterns.

        Returns:
            Suggestions, empty if the skill has no score or metrics.
        """
        score = self.scorer.calculate_score(skill_name)
        metrics = self.store.get_skill_metrics(skill_name)
        if score is None or metrics is None:
            return []

        suggestions: list[str] = []

        if score.success_rate < 0.5:
            suggestions.append(
                f"Improve success rate ({_pct(score.success_rate)}): "
                "Review skill implementation for common failure cases"
            )
        elif score.success_rate < 0.7:
            suggestions.append(
                f"Moderate success rate ({_pct(score.success_rate)}): "
                "Analyze failure patterns to identify improvement opportunities"
            )

        if score.user_satisfaction < 3.0:
            suggestions.append(
                f"Low user satisfaction ({score.user_satisfaction:.1f}/5.0): "
                "Gather user feedback and improve response quality"
            )
        elif score.user_satisfaction < 4.0:
            suggestions.append(
                f"Moderate satisfaction ({score.user_satisfaction:.1f}/5.0): "
                "Consider enhancing response clarity and completeness"
            )

        if score.efficiency < 0.5:
            suggestions.append(
                f"Low efficiency ({_pct(score.efficiency)}): "
                f"Reduce average conversation turns (currently {metrics.avg_turns:.1f}) "
                "by providing more comprehensive initial responses"
            )
        elif score.efficiency < 0.7:
            suggestions.append(
                f"Moderate efficiency ({_pct(score.efficiency)}): "
                "Aim to reduce follow-up questions and provide more direct answers"
            )

        if score.trend == "declining":
            suggestions.append(
                "Declining performance trend detected: Review recent changes and investigate potential issues"
            )

        for pattern in self.scorer.analyze_failure_patterns(skill_name):
            if pattern not in suggestions:
                suggestions.append(pattern)

        return suggestions

    def generate_report(self, skill_name: str) -> str:
        """Render a Markdown performance report for a skill."""
        score = self.scorer.calculate_score(skill_name)
        metrics = self.store.get_skill_metrics(skill_name)

        lines: list[str] = [f"# Performance Report: {skill_name}", ""]

        if score is None or metrics is None:
            lines.append("No data available for this skill.")
            lines.append("")
            return "\n".join(lines)

        lines.append("## Overall Score")
        lines.append("")
        lines.append(f"- **Score**: {score.overall_score}/100")
        lines.append(f"- **Trend**: {trend_emoji(score.trend)} {score.trend}")
        lines.append("")

        lines.append("## Detailed Metrics")
        lines.append("")
        lines.append(f"- **Success Rate**: {_pct(score.success_rate)}")
        lines.append(f"- **User Satisfaction**: {score.user_satisfaction:.1f}/5.0")
        lines.append(f"- **Efficiency**: {_pct(score.efficiency)}")
        lines.append("")

        lines.append("## Call Statistics")
        lines.append("")
        lines.append(f"- **Total Calls**: {metrics.total_calls}")
        lines.append(f"- **Average Turns**: {metrics.avg_turns:.1f}")
        lines.append(f"- **Last Updated**: {metrics.last_updated or 'N/A'}")
        lines.append("")

        suggestions = self.generate_improvement_suggestions(skill_name)
        if suggestions:
            lines.append("## Improvement Suggestions")
            lines.append("")
            for i, suggestion in enumerate(suggestions, 1):
                lines.append(f"{i}. {suggestion}")
            lines.append("")

        patterns = self.scorer.analyze_failure_patterns(skill_name)
        if patterns:
            lines.append("## Failure Patterns")
            lines.append("")
            for i, pattern in enumerate(patterns, 1):
                lines.append(f"{i}. {pattern}")
            lines.append("")

        return "\n".join(lines)
