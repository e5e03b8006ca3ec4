"""Tests for the skillmeter CLI."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from typer.testing import CliRunner

import skillmeter.logging
from skillmeter.cli import app
from skillmeter.telemetry import MetricsStore

runner = CliRunner()


@pytest.fixture
def paths(tmp_path: Path) -> list[str]:
    """--db option pointing into tmp_path."""
    return ["--db", str(tmp_path / "metrics.db")]


def _start(paths: list[str], skill: str = "docx") -> str:
    result = runner.invoke(app, ["track", "start", skill, "-q", "How?", "-c", "ctx", *paths])
    assert result.exit_code == 0, result.output
    return result.stdout.strip()


class TestTrackCommands:
    """Tests for the track sub-app."""

    def test_start_then_end(self, paths: list[str], tmp_path: Path) -> None:
        """A session started in one invocation can be ended in another."""
        session_id = _start(paths)

        result = runner.invoke(
            app,
            ["track", "end", session_id, "--success-rate", "0.8", "--turns", "3", "--rating", "4", *paths],
        )

        assert result.exit_code == 0, result.output
        metrics = MetricsStore(tmp_path / "metrics.db").get_skill_metrics("docx")
        assert metrics is not None
        assert metrics.total_calls == 1
        assert metrics.avg_rating == pytest.approx(4)

    def test_end_unknown_session_fails(self, paths: list[str], tmp_path: Path) -> None:
        result = runner.invoke(app, ["track", "end", "nope", "--success-rate", "1", "--turns", "1", *paths])

        assert result.exit_code == 1
        assert MetricsStore(tmp_path / "metrics.db").get_all_metrics() == []

    def test_end_twice_fails(self, paths: list[str]) -> None:
        session_id = _start(paths)
        args = ["track", "end", session_id, "--success-rate", "1", "--turns", "1", *paths]

        assert runner.invoke(app, args).exit_code == 0
        assert runner.invoke(app, args).exit_code == 1

    def test_end_against_other_database_fails(self, tmp_path: Path) -> None:
        """A session is only known to the database it was started in."""
        db_a = ["--db", str(tmp_path / "a.db")]
        db_b = ["--db", str(tmp_path / "b.db")]
        docx_session = _start(db_a, "docx")
        _start(db_b, "pdf")

        result = runner.invoke(app, ["track", "end", docx_session, "-s", "0.1", "-t", "1", *db_b])

        assert result.exit_code == 1
        store_b = MetricsStore(tmp_path / "b.db")
        assert store_b.get_all_metrics() == []
        assert store_b.count_open_calls("pdf") == 1
        assert MetricsStore(tmp_path / "a.db").count_open_calls("docx") == 1

    def test_success_rate_out_of_range(self, paths: list[str]) -> None:
        session_id = _start(paths)

        result = runner.invoke(app, ["track", "end", session_id, "--success-rate", "1.5", "--turns", "1", *paths])

        assert result.exit_code != 0

    def test_start_empty_skill_fails(self, paths: list[str]) -> None:
        result = runner.invoke(app, ["track", "start", "", *paths])

        assert result.exit_code == 1

    def test_analyze_transcript(self, tmp_path: Path) -> None:
        transcript = tmp_path / "chat.txt"
        transcript.write_text(
            "User: How do I add a chart?\nAssistant: Use insert.\n\nUser: Can it be a pie?\n",
            encoding="utf-8",
        )

        result = runner.invoke(app, ["track", "analyze", str(transcript)])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["total_turns"] == 3
        assert data["question_count"] == 2
        assert data["follow_up_questions"] == 1


class TestInsightsCommands:
    """Tests for the insights sub-app."""

    @pytest.fixture
    def db(self, tmp_path: Path, record_many) -> str:
        """Database seeded with one healthy and one failing skill."""
        record_many("docx", 10, 0.9, rating=5, turns=2)
        record_many("pdf", 5, 0.2, turns=9, accepted=0)
        return str(tmp_path / "metrics.db")

    def test_missing_database(self, tmp_path: Path) -> None:
        result = runner.invoke(app, ["insights", "overview", "--db", str(tmp_path / "none.db")])

        assert result.exit_code == 1

    def test_score_json(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "score", "docx", "--db", db, "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["skill_name"] == "docx"
        assert data["trend"] == "stable"

    def test_score_unknown_skill(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "score", "ghost", "--db", db])

        assert result.exit_code == 1

    def test_check_warns_and_suggests(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "check", "pdf", "--db", db, "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["should_suggest"] is True
        assert data["type"] == "warning"
        assert data["alternatives"][0].startswith("docx (score: ")

    def test_check_healthy(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "check", "docx", "--db", db])

        assert result.exit_code == 0
        assert "No concerns" in result.stdout

    def test_report(self, db: str, tmp_path: Path) -> None:
        out = tmp_path / "reports" / "pdf.md"

        result = runner.invoke(app, ["insights", "report", "pdf", "--db", db, "--output", str(out)])

        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8").startswith("# Performance Report: pdf")

    def test_suggest(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "suggest", "pdf", "--db", db])

        assert result.exit_code == 0
        assert "1. Improve success rate" in result.stdout

    def test_best(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "best", "--db", db, "--json"])

        assert result.exit_code == 0
        assert [s["skill_name"] for s in json.loads(result.stdout)] == ["docx", "pdf"]

    def test_overview(self, db: str) -> None:
        result = runner.invoke(app, ["insights", "overview", "--db", db, "--json"])

        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert {row["skill"] for row in data["skills"]} == {"docx", "pdf"}
        assert data["open_calls"] == 0

    def test_export(self, db: str, tmp_path: Path) -> None:
        out = tmp_path / "docx.json"

        result = runner.invoke(app, ["insights", "export", "docx", "--db", db, "--output", str(out)])

        assert result.exit_code == 0, result.output
        assert json.loads(out.read_text(encoding="utf-8"))["total_calls"] == 10

    def test_export_without_database(self, tmp_path: Path) -> None:
        """Exporting before anything was tracked writes zeroed metrics."""
        out = tmp_path / "ghost.json"

        result = runner.invoke(
            app, ["insights", "export", "ghost", "--db", str(tmp_path / "fresh.db"), "--output", str(out)]
        )

        assert result.exit_code == 0, result.output
        data = json.loads(out.read_text(encoding="utf-8"))
        assert data["total_calls"] == 0
        assert data["last_updated"] is None
        assert data["recent_calls"] == []


class TestRootOptions:
    """Tests for options on the root command."""

    def test_verbose_enables_debug_logging(self, paths: list[str], monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(skillmeter.logging, "_loggers", {})
        monkeypatch.setattr(skillmeter.logging, "_level_override", None)

        result = runner.invoke(app, ["-v", "track", "start", "docx", *paths])

        assert result.exit_code == 0, result.output
        assert skillmeter.logging._level_override == logging.DEBUG
