"""Tests for skillmeter.analysis.advisor module."""

from __future__ import annotations

from unittest.mock import patch

import pytest

from skillmeter.analysis.advisor import (
    FALLBACK_ALTERNATIVE,
    SkillAdvisor,
    Suggestion,
    trend_emoji,
)
from skillmeter.analysis.scorer import PATTERN_HIGH_TURNS, PATTERN_LOW_ACCEPTANCE, SkillScorer
from skillmeter.outcome import Failed, Present
from skillmeter.telemetry.store import MetricsStore


@pytest.fixture
def advisor(store: MetricsStore) -> SkillAdvisor:
    return SkillAdvisor(store)


class TestCheckBeforeCall:
    """Tests for check_before_call."""

    def test_no_data(self, advisor: SkillAdvisor) -> None:
        assert advisor.check_before_call("ghost") == Suggestion(should_suggest=False)

    def test_healthy_skill(self, advisor: SkillAdvisor, record_many) -> None:
        """Good score, steady trend and decent success rate need no warning."""
        record_many("docx", 10, 0.9, rating=5, turns=2)

        suggestion = advisor.check_before_call("docx")

        assert suggestion.should_suggest is False
        assert suggestion.message is None
        assert suggestion.alternatives == []

    def test_low_success_rate(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 5, 0.3)
        record_many("pdf", 5, 1.0, rating=5, turns=1)
        record_many("xlsx", 5, 0.9, rating=4, turns=3)
        record_many("pptx", 5, 0.8, rating=3, turns=3)

        suggestion = advisor.check_before_call("docx")

        assert suggestion.should_suggest is True
        assert suggestion.type == "warning"
        assert "low success rate" in suggestion.message
        assert "(30.0%)" in suggestion.message
        assert suggestion.alternatives == ["pdf (score: 100)", "xlsx (score: 84)"]

    def test_low_success_wins_over_decline(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 10, 0.6)
        record_many("docx", 10, 0.2)

        suggestion = advisor.check_before_call("docx")

        assert "low success rate" in suggestion.message

    def test_declining_trend(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 10, 1.0, rating=5)
        record_many("docx", 10, 0.6, rating=5)

        suggestion = advisor.check_before_call("docx")

        assert suggestion.should_suggest is True
        assert suggestion.type == "warning"
        assert "declining performance trend" in suggestion.message

    def test_low_overall_score(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 5, 0.5, rating=1, turns=11)  # 20 + 7 + 0

        suggestion = advisor.check_before_call("docx")

        assert suggestion.should_suggest is True
        assert suggestion.type == "info"
        assert "low overall score (27/100)" in suggestion.message

    def test_alternatives_exclude_self(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("best", 3, 1.0, rating=5, turns=1)
        record_many("docx", 3, 0.1)

        suggestion = advisor.check_before_call("docx")

        assert suggestion.alternatives == ["best (score: 100)"]

    def test_alternative_lookup_failure_falls_back(self, advisor: SkillAdvisor, record_many) -> None:
        """A failing lookup must not break the pre-call check."""
        record_many("docx", 5, 0.2)

        with patch.object(SkillScorer, "get_best_skills", side_effect=RuntimeError("boom")):
            suggestion = advisor.check_before_call("docx")

        assert suggestion.should_suggest is True
        assert suggestion.alternatives == [FALLBACK_ALTERNATIVE]

    def test_find_alternatives_tagged(self, advisor: SkillAdvisor, record) -> None:
        record("pdf", 1.0)
        assert isinstance(advisor.find_alternatives("docx"), Present)

        with patch.object(SkillScorer, "get_best_skills", side_effect=RuntimeError("boom")):
            outcome = advisor.find_alternatives("docx")

        assert isinstance(outcome, Failed)
        assert outcome.message == "boom"


class TestImprovementSuggestions:
    """Tests for generate_improvement_suggestions."""

    def test_no_data(self, advisor: SkillAdvisor) -> None:
        assert advisor.generate_improvement_suggestions("ghost") == []

    def test_healthy_skill_has_none(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 5, 0.95, rating=5, turns=1)

        assert advisor.generate_improvement_suggestions("docx") == []

    def test_low_thresholds(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 4, 0.3, turns=8, accepted=0)

        suggestions = advisor.generate_improvement_suggestions("docx")

        assert suggestions[0].startswith("Improve success rate (30.0%)")
        assert suggestions[1].startswith("Moderate satisfaction (3.5/5.0)")
        assert suggestions[2].startswith("Low efficiency (30.0%)")
        assert "currently 8.0" in suggestions[2]
        assert suggestions[3:] == [PATTERN_HIGH_TURNS, PATTERN_LOW_ACCEPTANCE]

    def test_moderate_thresholds(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 4, 0.6, rating=2, turns=4)

        suggestions = advisor.generate_improvement_suggestions("docx")

        assert suggestions[0].startswith("Moderate success rate (60.0%)")
        assert suggestions[1].startswith("Low user satisfaction (2.0/5.0)")
        assert len(suggestions) == 2

    def test_declining_trend(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 10, 1.0, rating=5, turns=1)
        record_many("docx", 10, 0.7, rating=5, turns=1)

        suggestions = advisor.generate_improvement_suggestions("docx")

        assert suggestions == [
            "Declining performance trend detected: Review recent changes and investigate potential issues"
        ]

    def test_patterns_deduplicated(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 4, 0.3, turns=8, accepted=0)

        suggestions = advisor.generate_improvement_suggestions("docx")

        assert len(suggestions) == len(set(suggestions))


class TestGenerateReport:
    """Tests for generate_report."""

    def test_no_data(self, advisor: SkillAdvisor) -> None:
        report = advisor.generate_report("ghost")

        assert report == "# Performance Report: ghost\n\nNo data available for this skill.\n"

    def test_sections(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 30, 0.8, rating=4, turns=3)

        report = advisor.generate_report("docx")

        assert report.startswith("# Performance Report: docx\n")
        assert "## Overall Score" in report
        assert "- **Score**: 80/100" in report
        assert "- **Trend**: ➡️ stable" in report
        assert "## Detailed Metrics" in report
        assert "- **Success Rate**: 80.0%" in report
        assert "- **User Satisfaction**: 4.0/5.0" in report
        assert "- **Efficiency**: 80.0%" in report
        assert "## Call Statistics" in report
        assert "- **Total Calls**: 30" in report
        assert "- **Average Turns**: 3.0" in report
        assert "## Failure Patterns" not in report

    def test_suggestions_and_patterns(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 4, 0.3, turns=8, accepted=0)

        report = advisor.generate_report("docx")

        assert "## Improvement Suggestions" in report
        assert "1. Improve success rate (30.0%)" in report
        assert "## Failure Patterns" in report
        assert f"1. {PATTERN_HIGH_TURNS}" in report

    def test_declining_emoji(self, advisor: SkillAdvisor, record_many) -> None:
        record_many("docx", 10, 1.0, rating=5)
        record_many("docx", 10, 0.6, rating=5)

        assert "- **Trend**: 📉 declining" in advisor.generate_report("docx")


class TestTrendEmoji:
    """Tests for trend_emoji."""

    @pytest.mark.parametrize(
        ("trend", "emoji"),
        [("improving", "📈"), ("declining", "📉"), ("stable", "➡️"), ("sideways", "❓")],
    )
    def test_mapping(self, trend: str, emoji: str) -> None:
        assert trend_emoji(trend) == emoji
