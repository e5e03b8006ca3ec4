"""Shared fixtures for skillmeter tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from skillmeter.telemetry import MetricsStore

RecordFn = Callable[..., int]


@pytest.fixture
def db_path(tmp_path: Path) -> Path:
    return tmp_path / "metrics.db"


@pytest.fixture
def store(db_path: Path) -> MetricsStore:
    return MetricsStore(db_path)


@pytest.fixture
def record(store: MetricsStore) -> RecordFn:
    """Record a closed call; later calls are newer.

    Returns the call ID.
    """

    def _record(
        skill: str,
        success_rate: float,
        *,
        rating: float | None = None,
        turns: int = 3,
        follow_ups: int = 0,
        accepted: int = 1,
        question: str = "How do I do this?",
    ) -> int:
        call_id = store.record_call(skill, f"session-{skill}", "context", question)
        store.record_result(
            call_id,
            success_rate=success_rate,
            turns=turns,
            follow_up_questions=follow_ups,
            accepted_suggestions=accepted,
            user_rating=rating,
        )
        return call_id

    return _record


@pytest.fixture
def record_many(record: RecordFn) -> Callable[..., None]:
    """Record the same result several times."""

    def _record_many(skill: str, count: int, success_rate: float, **kwargs) -> None:
        for _ in range(count):
            record(skill, success_rate, **kwargs)

    return _record_many
