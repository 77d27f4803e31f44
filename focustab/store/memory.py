"""
In-memory session store — process-lifetime persistence for the local-only
Pomodoro widget, and the default backend in tests.
"""

from __future__ import annotations

import copy
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..timer.clock import utc_date
from ..timer.errors import SessionNotFoundError
from ..timer.session import Session, SessionType
from .base import DEFAULT_CONTEXT, SessionStore, checked_changes, new_session


class InMemorySessionStore(SessionStore):

    def __init__(self):
        self._sessions: Dict[str, Session] = {}

    def create_session(
        self,
        session_type: SessionType,
        planned_duration_seconds: int,
        *,
        context: str = DEFAULT_CONTEXT,
        start_time: Optional[float] = None,
        completed_cycles: int = 0,
        blocked_sites: Iterable[str] = (),
    ) -> Session:
        session = new_session(
            session_type, planned_duration_seconds, context,
            start_time, completed_cycles, blocked_sites,
        )
        self._sessions[session.id] = session
        return copy.deepcopy(session)

    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        current = self._sessions.get(session_id)
        if current is None:
            raise SessionNotFoundError(session_id)
        updated = replace(current, **checked_changes(current, changes))
        self._sessions[session_id] = updated
        return copy.deepcopy(updated)

    def get_session(self, session_id: str) -> Session:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return copy.deepcopy(session)

    def list_sessions(
        self,
        context: str = DEFAULT_CONTEXT,
        date: Optional[str] = None,
        limit: int = 50,
    ) -> List[Session]:
        matches = [
            s for s in self._sessions.values()
            if s.context == context and (date is None or utc_date(s.start_time) == date)
        ]
        matches.sort(key=lambda s: (s.start_time, s.created_at), reverse=True)
        return [copy.deepcopy(s) for s in matches[:limit]]

    def active_contexts(self) -> List[str]:
        return sorted({s.context for s in self._sessions.values() if s.is_active})
