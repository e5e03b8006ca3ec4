"""skillmeter: performance telemetry and recommendations for agent skills.

This package provides:
- Start/end tracking of skill invocations backed by SQLite
- Composite scoring, trend detection and failure-pattern analysis
- Pre-call warnings, alternative skills, and Markdown reports
"""

__version__ = "0.1.0"

from skillmeter.analysis import SkillAdvisor, SkillScore, SkillScorer, Suggestion
from skillmeter.errors import SkillmeterError, UnknownSessionError
from skillmeter.logging import get_logger
from skillmeter.telemetry import MetricsStore, SessionTracker, TrackingResult

__all__ = [
    "MetricsStore",
    "SessionTracker",
    "SkillAdvisor",
    "SkillScore",
    "SkillScorer",
    "SkillmeterError",
    "Suggestion",
    "TrackingResult",
    "UnknownSessionError",
    "get_logger",
]
