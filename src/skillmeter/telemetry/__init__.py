"""Skill invocation telemetry.

Provides:
- SQLite-backed store for calls, results, and per-skill rollups
- Start/end session tracking with pluggable open-session maps
- Conversation feature extraction and JSON export
"""

from skillmeter.telemetry.conversation import ConversationAnalysis, analyze_conversation
from skillmeter.telemetry.sessions import InMemorySessionMap, SessionMap, StoreSessionMap
from skillmeter.telemetry.store import (
    MetricsStore,
    RecentCall,
    SkillCall,
    SkillMetrics,
    SkillResult,
)
from skillmeter.telemetry.tracker import SessionTracker, TrackingResult

__all__ = [
    "ConversationAnalysis",
    "InMemorySessionMap",
    "MetricsStore",
    "RecentCall",
    "SessionMap",
    "SessionTracker",
    "SkillCall",
    "SkillMetrics",
    "SkillResult",
    "StoreSessionMap",
    "TrackingResult",
    "analyze_conversation",
]
