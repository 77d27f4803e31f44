"""
Exceptions raised by the focus timer core and the session stores.
"""

from __future__ import annotations


class FocusTimerError(Exception):
    """Base class for every error the timer core raises."""


class AlreadyActiveError(FocusTimerError):
    """A session is already running for this context; stop it first."""

    def __init__(self, context: str, session_id: str):
        super().__init__(f"Context {context!r} already has active session {session_id}")
        self.context = context
        self.session_id = session_id


class InvalidTransitionError(FocusTimerError):
    def __init__(self, action: str, phase: str):
        super().__init__(f"Cannot {action} while {phase}")
        self.action = action
        self.phase = phase


class SessionStoreError(FocusTimerError):
    """The session store could not be reached or rejected a write."""


class SessionNotFoundError(SessionStoreError):
    def __init__(self, session_id: str):
        super().__init__(f"Session not found: {session_id}")
        self.session_id = session_id


class SessionAlreadyEndedError(SessionStoreError):
    """The record already has an end time; ended sessions are never rewritten."""

    def __init__(self, session_id: str):
        super().__init__(f"Session {session_id} has already ended")
        self.session_id = session_id


class InvalidSessionUpdateError(SessionStoreError):
    """The update would leave the record inconsistent (e.g. ending before it started)."""
