"""SQLite-backed store for skill calls, results, and per-skill rollups.

Three tables:

- skill_calls: one row per invocation attempt, written when tracking starts
- skill_results: at most one row per call, written when tracking ends
- skill_metrics: one rollup row per skill, fully recomputed from
  skill_results every time a result is recorded (derive, don't accumulate)

Default location: ./.claude/skillmeter/metrics.db
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterator
from contextlib import closing, contextmanager
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any

from skillmeter.config import get_metrics_db_path
from skillmeter.errors import InvalidSkillNameError
from skillmeter.logging import get_logger

_logger = get_logger("telemetry.store")


def utc_now() -> str:
    """Current UTC time as an ISO-8601 string with microsecond precision."""
    return datetime.now(UTC).isoformat(timespec="microseconds")


@dataclass(frozen=True)
class SkillCall:
    """One invocation attempt of a skill."""

    id: int
    skill_name: str
    timestamp: str
    session_id: str
    context_summary: str
    user_question: str


@dataclass(frozen=True)
class SkillResult:
    """Outcome of exactly one call."""

    id: int
    call_id: int
    success_rate: float
    user_rating: float | None
    turns: int
    follow_up_questions: int
    accepted_suggestions: int
    timestamp: str


@dataclass(frozen=True)
class SkillMetrics:
    """Rollup over every recorded result of one skill."""

    skill_name: str
    total_calls: int
    avg_success_rate: float
    avg_rating: float
    avg_turns: float
    last_updated: str | None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return asdict(self)


@dataclass(frozen=True)
class RecentCall:
    """A call left-joined with its result.

    Result fields are None while the call is still open.
    """

    id: int
    skill_name: str
    timestamp: str
    session_id: str
    context_summary: str
    user_question: str
    success_rate: float | None = None
    user_rating: float | None = None
    turns: int | None = None
    follow_up_questions: int | None = None
    accepted_suggestions: int | None = None

    @property
    def has_result(self) -> bool:
        """Whether the call has been closed with a result."""
        return self.success_rate is not None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dict for serialization."""
        return asdict(self)


class MetricsStore:
    """SQLite-backed skill telemetry storage.

    Each public operation opens its own connection and runs in a single
    transaction, so several processes can share one database file.
    """

    def __init__(self, db_path: Path | str | None = None):
        """Initialize the store and create the schema if needed.

        Args:
            db_path: Path to SQLite database. Defaults to project-local path.
        """
        if db_path is None:
            db_path = get_metrics_db_path()
        self.db_path = Path(db_path)
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        self._init_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection with row factory and FK enforcement."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA foreign_keys = ON")
        return conn

    @contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Yield a connection whose work commits on success and rolls back on error."""
        with closing(self._get_connection()) as conn, conn:
            yield conn

    def _init_db(self) -> None:
        """Initialize database schema."""
        with closing(self._get_connection()) as conn:
            conn.execute("PRAGMA journal_mode = WAL")
            with conn:
                conn.execute("""
                    CREATE TABLE IF NOT EXISTS skill_calls (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        skill_name TEXT NOT NULL,
                        timestamp TEXT NOT NULL,
                        session_id TEXT NOT NULL,
                        context_summary TEXT NOT NULL,
                        user_question TEXT NOT NULL
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS skill_results (
                        id INTEGER PRIMARY KEY AUTOINCREMENT,
                        call_id INTEGER NOT NULL UNIQUE,
                        success_rate REAL NOT NULL,
                        user_rating REAL,
                        turns INTEGER NOT NULL,
                        follow_up_questions INTEGER NOT NULL,
                        accepted_suggestions INTEGER NOT NULL,
                        timestamp TEXT NOT NULL,
                        FOREIGN KEY (call_id) REFERENCES skill_calls(id)
                    )
                """)

                conn.execute("""
                    CREATE TABLE IF NOT EXISTS skill_metrics (
                        skill_name TEXT PRIMARY KEY,
                        total_calls INTEGER NOT NULL DEFAULT 0,
                        avg_success_rate REAL NOT NULL DEFAULT 0,
                        avg_rating REAL NOT NULL DEFAULT 0,
                        avg_turns REAL NOT NULL DEFAULT 0,
                        last_updated TEXT
                    )
                """)

                conn.execute("CREATE INDEX IF NOT EXISTS idx_skill_calls_name ON skill_calls(skill_name)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_skill_calls_timestamp ON skill_calls(timestamp DESC)")
                conn.execute("CREATE INDEX IF NOT EXISTS idx_skill_calls_session ON skill_calls(session_id)")

        _logger.debug("Initialized metrics database at %s", self.db_path)

    def record_call(
        self,
        skill_name: str,
        session_id: str,
        context_summary: str,
        user_question: str,
    ) -> int:
        """Record the start of a skill invocation.

        Args:
            skill_name: Name of the skill being invoked.
            session_id: Caller-visible session identifier.
            context_summary: Free-text summary of the surrounding context.
            user_question: The user's question.

        Returns:
            The new call ID.

        Raises:
            InvalidSkillNameError: If skill_name is empty.
        """
        if not skill_name or not skill_name.strip():
            raise InvalidSkillNameError(skill_name)

        with self._transaction() as conn:
            cursor = conn.execute(
                """
                INSERT INTO skill_calls (skill_name, timestamp, session_id, context_summary, user_question)
                VALUES (?, ?, ?, ?, ?)
                """,
                (skill_name, utc_now(), session_id, context_summary, user_question),
            )
            call_id = cursor.lastrowid

        _logger.debug("Recorded call %s for skill %s (session=%s)", call_id, skill_name, session_id)
        return int(call_id or 0)

    def record_result(
        self,
        call_id: int,
        success_rate: float,
        turns: int,
        follow_up_questions: int,
        accepted_suggestions: int,
        user_rating: float | None = None,
    ) -> None:
        """Record the outcome of a call and refresh the skill's rollup.

        The insert and the rollup recompute share one transaction, so a
        concurrent reader never sees one without the other.

        Args:
            call_id: ID returned by record_call.
            success_rate: Outcome in [0, 1].
            turns: Conversational exchanges consumed.
            follow_up_questions: Follow-up questions the user had to ask.
            accepted_suggestions: Suggestions the user accepted.
            user_rating: Optional rating, conventionally 1-5.

        Raises:
            sqlite3.IntegrityError: If call_id does not reference a call, or
                the call already has a result.
        """
        with self._transaction() as conn:
            conn.execute(
                """
                INSERT INTO skill_results
                (call_id, success_rate, user_rating, turns, follow_up_questions,
                 accepted_suggestions, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    call_id,
                    success_rate,
                    user_rating,
                    turns,
                    follow_up_questions,
                    accepted_suggestions,
                    utc_now(),
                ),
            )

            row = conn.execute("SELECT skill_name FROM skill_calls WHERE id = ?", (call_id,)).fetchone()
            if row:
                self._update_metrics(conn, row["skill_name"])

        _logger.debug("Recorded result for call %s (success_rate=%.2f)", call_id, success_rate)

    def update_metrics(self, skill_name: str) -> None:
        """Recompute the rollup for a skill from all of its results.

        Args:
            skill_name: Skill to recompute.
        """
        with self._transaction() as conn:
            self._update_metrics(conn, skill_name)

    def _update_metrics(self, conn: sqlite3.Connection, skill_name: str) -> None:
        # AVG() skips NULL ratings, so unrated results stay out of the denominator.
        row = conn.execute(
            """
            SELECT
                COUNT(*) AS total_calls,
                AVG(sr.success_rate) AS avg_success_rate,
                AVG(sr.user_rating) AS avg_rating,
                AVG(sr.turns) AS avg_turns
            FROM skill_results sr
            INNER JOIN skill_calls sc ON sr.call_id = sc.id
            WHERE sc.skill_name = ?
            """,
            (skill_name,),
        ).fetchone()

        if not row or row["total_calls"] == 0:
            return

        conn.execute(
            """
            INSERT INTO skill_metrics
            (skill_name, total_calls, avg_success_rate, avg_rating, avg_turns, last_updated)
            VALUES (?, ?, ?, ?, ?, ?)
            ON CONFLICT(skill_name) DO UPDATE SET
                total_calls = excluded.total_calls,
                avg_success_rate = excluded.avg_success_rate,
                avg_rating = excluded.avg_rating,
                avg_turns = excluded.avg_turns,
                last_updated = excluded.last_updated
            """,
            (
                skill_name,
                row["total_calls"],
                row["avg_success_rate"],
                row["avg_rating"] if row["avg_rating"] is not None else 0,
                row["avg_turns"],
                utc_now(),
            ),
        )
        _logger.debug("Recomputed metrics for %s over %d results", skill_name, row["total_calls"])

    def get_skill_metrics(self, skill_name: str) -> SkillMetrics | None:
        """Get the rollup for a skill.

        Args:
            skill_name: Skill to look up.

        Returns:
            The metrics, or None if the skill has no recorded results.
        """
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                """
                SELECT skill_name, total_calls, avg_success_rate, avg_rating, avg_turns, last_updated
                FROM skill_metrics
                WHERE skill_name = ?
                """,
                (skill_name,),
            ).fetchone()

        return _metrics_from_row(row) if row else None

    def get_recent_calls(self, skill_name: str, limit: int = 30) -> list[RecentCall]:
        """Get a skill's most recent calls with their results, newest first.

        Open calls are included with empty result fields.

        Args:
            skill_name: Skill to look up.
            limit: Maximum number of rows to return.

        Returns:
            List of calls, newest first.
        """
        with closing(self._get_connection()) as conn:
            rows = conn.execute(
                """
                SELECT
                    sc.id, sc.skill_name, sc.timestamp, sc.session_id,
                    sc.context_summary, sc.user_question,
                    sr.success_rate, sr.user_rating, sr.turns,
                    sr.follow_up_questions, sr.accepted_suggestions
                FROM skill_calls sc
                LEFT JOIN skill_results sr ON sc.id = sr.call_id
                WHERE sc.skill_name = ?
                ORDER BY sc.timestamp DESC, sc.id DESC
                LIMIT ?
                """,
                (skill_name, limit),
            ).fetchall()

        return [RecentCall(**dict(r)) for r in rows]

    def get_all_metrics(self) -> list[SkillMetrics]:
        """Get the rollup of every skill with at least one result, by skill name."""
        with closing(self._get_connection()) as conn:
            rows = conn.execute("""
                SELECT skill_name, total_calls, avg_success_rate, avg_rating, avg_turns, last_updated
                FROM skill_metrics
                ORDER BY skill_name
            """).fetchall()

        return [_metrics_from_row(r) for r in rows]

    def get_call(self, call_id: int) -> SkillCall | None:
        """Get a single call by ID."""
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                """
                SELECT id, skill_name, timestamp, session_id, context_summary, user_question
                FROM skill_calls WHERE id = ?
                """,
                (call_id,),
            ).fetchone()

        return SkillCall(**dict(row)) if row else None

    def get_result(self, call_id: int) -> SkillResult | None:
        """Get the result recorded for a call, if the call has been closed."""
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                """
                SELECT id, call_id, success_rate, user_rating, turns, follow_up_questions,
                       accepted_suggestions, timestamp
                FROM skill_results WHERE call_id = ?
                """,
                (call_id,),
            ).fetchone()

        return SkillResult(**dict(row)) if row else None

    def count_open_calls(self, skill_name: str | None = None) -> int:
        """Count calls that were started but never given a result.

        Args:
            skill_name: Optional skill to filter by.
        """
        query = """
            SELECT COUNT(*) AS count
            FROM skill_calls sc
            LEFT JOIN skill_results sr ON sc.id = sr.call_id
            WHERE sr.id IS NULL
        """
        params: tuple[Any, ...] = ()
        if skill_name:
            query += " AND sc.skill_name = ?"
            params = (skill_name,)

        with closing(self._get_connection()) as conn:
            return int(conn.execute(query, params).fetchone()["count"])

    def get_open_call_id(self, session_id: str) -> int | None:
        """Get the call a session refers to, while it has no result yet.

        Args:
            session_id: Session identifier stored on the call.

        Returns:
            The call ID, or None if no open call carries this session.
        """
        with closing(self._get_connection()) as conn:
            row = conn.execute(
                """
                SELECT sc.id
                FROM skill_calls sc
                LEFT JOIN skill_results sr ON sr.call_id = sc.id
                WHERE sc.session_id = ? AND sr.id IS NULL
                ORDER BY sc.id DESC
                LIMIT 1
                """,
                (session_id,),
            ).fetchone()

        return int(row["id"]) if row else None


def _metrics_from_row(row: sqlite3.Row) -> SkillMetrics:
    return SkillMetrics(
        skill_name=row["skill_name"],
        total_calls=row["total_calls"],
        avg_success_rate=row["avg_success_rate"],
        avg_rating=row["avg_rating"],
        avg_turns=row["avg_turns"],
        last_updated=row["last_updated"],
    )
