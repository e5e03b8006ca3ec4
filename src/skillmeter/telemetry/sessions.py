"""Open-session maps: session ID -> call ID for in-flight invocations.

A session is only present between start_tracking and end_tracking. The
in-memory map is lost when the process exits, which leaves any open call
pending forever. The store-backed map reads open sessions straight from
the metrics database, so separate CLI invocations (and concurrent
processes) can start and end sessions against the same file.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from skillmeter.errors import UnknownSessionError
from skillmeter.logging import get_logger
from skillmeter.telemetry.store import MetricsStore

_logger = get_logger("telemetry.sessions")


@runtime_checkable
class SessionMap(Protocol):
    """Key-value store for open sessions."""

    def get(self, session_id: str) -> int | None: ...

    def put(self, session_id: str, call_id: int) -> None: ...

    def remove(self, session_id: str) -> None: ...


class InMemorySessionMap:
    """Process-local session map."""

    def __init__(self) -> None:
        self._sessions: dict[str, int] = {}

    def get(self, session_id: str) -> int | None:
        return self._sessions.get(session_id)

    def put(self, session_id: str, call_id: int) -> None:
        self._sessions[session_id] = call_id

    def remove(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: object) -> bool:
        return session_id in self._sessions


class StoreSessionMap:
    """Session map derived from the metrics store itself.

    A session is open while a call carrying its ID has no result. Nothing
    is kept outside the database: put only checks that the call belongs to
    the session, and the result insert in record_result closes it within
    the same transaction, so remove has nothing left to do.
    """

    def __init__(self, store: MetricsStore):
        self.store = store

    def get(self, session_id: str) -> int | None:
        return self.store.get_open_call_id(session_id)

    def put(self, session_id: str, call_id: int) -> None:
        call = self.store.get_call(call_id)
        if call is None or call.session_id != session_id:
            raise UnknownSessionError(session_id)
        _logger.debug("Session %s maps to call %s", session_id, call_id)

    def remove(self, session_id: str) -> None:
        pass
