"""
Session store interface — the timer core's only persistence boundary.

Backends:
    InMemorySessionStore   self-contained Pomodoro widget, tests
    SqliteSessionStore     records served by the local API
    HttpSessionStore       server-synced Focus-Mode widget talking to that API
"""

from __future__ import annotations

import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import replace
from typing import Any, Dict, Iterable, List, Optional

from ..timer.errors import (
    InvalidSessionUpdateError,
    SessionAlreadyEndedError,
    SessionStoreError,
)
from ..timer.session import MUTABLE_FIELDS, Session, SessionType

DEFAULT_CONTEXT = "default-user"


class SessionStore(ABC):

    @abstractmethod
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
        """Persist a new active session and return it with its id assigned."""

    @abstractmethod
    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        """Apply *changes* and return the stored record. Unknown ids raise SessionNotFoundError."""

    @abstractmethod
    def get_session(self, session_id: str) -> Session: ...

    @abstractmethod
    def list_sessions(
        self,
        context: str = DEFAULT_CONTEXT,
        date: Optional[str] = None,
        limit: int = 50,
    ) -> List[Session]:
        """Records for *context*, newest start first; *date* is a UTC YYYY-MM-DD filter."""

    def list_active_sessions(self, context: str = DEFAULT_CONTEXT) -> List[Session]:
        return [s for s in self.list_sessions(context, limit=10_000) if s.is_active]

    def latest_session(self, context: str = DEFAULT_CONTEXT) -> Optional[Session]:
        sessions = self.list_sessions(context, limit=1)
        return sessions[0] if sessions else None

    @abstractmethod
    def active_contexts(self) -> List[str]:
        """Every context that currently has an active session."""


# ---------------------------------------------------------------------------
# Helpers shared by the concrete stores
# ---------------------------------------------------------------------------

def new_session(
    session_type: SessionType,
    planned_duration_seconds: int,
    context: str,
    start_time: Optional[float],
    completed_cycles: int,
    blocked_sites: Iterable[str],
) -> Session:
    if int(planned_duration_seconds) <= 0:
        raise SessionStoreError("planned_duration_seconds must be positive")
    now = time.time()
    return Session(
        id=uuid.uuid4().hex,
        context=context,
        session_type=SessionType(session_type),
        start_time=now if start_time is None else float(start_time),
        planned_duration_seconds=int(planned_duration_seconds),
        is_active=True,
        completed_cycles=int(completed_cycles),
        blocked_sites=list(blocked_sites),
        created_at=now,
    )


def clean_changes(changes: Dict[str, Any]) -> Dict[str, Any]:
    """Drop fields that may not change after creation (id, planned duration, ...)."""
    return {k: v for k, v in changes.items() if k in MUTABLE_FIELDS}


def checked_changes(current: Session, changes: Dict[str, Any]) -> Dict[str, Any]:
    """
    Clean *changes* and make sure applying them to *current* keeps the record
    consistent. An ended record accepts no further changes; an end time must
    come with is_active=False and may not precede the start time.
    """
    fields = clean_changes(changes)
    if not fields:
        return fields
    if current.has_ended:
        raise SessionAlreadyEndedError(current.id)

    merged = replace(current, **fields)
    if merged.end_time is not None:
        if merged.is_active:
            raise InvalidSessionUpdateError(
                f"Session {current.id}: end_time requires is_active=false"
            )
        if merged.end_time < merged.start_time:
            raise InvalidSessionUpdateError(
                f"Session {current.id}: end_time {merged.end_time} is before "
                f"start_time {merged.start_time}"
            )
    return fields
