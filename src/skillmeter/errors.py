"""Exceptions raised by skillmeter.

Only caller-contract violations get their own types. Storage faults are
left as the sqlite3/OS errors they are.
"""


class SkillmeterError(Exception):
    """Base class for skillmeter errors."""


class InvalidSkillNameError(SkillmeterError, ValueError):
    """A call was recorded without a skill name."""

    def __init__(self, skill_name: str) -> None:
        super().__init__(f"Skill name must be a non-empty string, got {skill_name!r}")
        self.skill_name = skill_name


class UnknownSessionError(SkillmeterError, KeyError):
    """A session was ended that is not open (never started, or already ended)."""

    def __init__(self, session_id: str) -> None:
        super().__init__(session_id)
        self.session_id = session_id

    def __str__(self) -> str:
        return f"Invalid session ID: {self.session_id}"
