"""
Elapsed-Time Calculator — derives a session's countdown from the wall clock.

    remaining = clamp(planned - (now - start_time), 0, planned)

Nothing here keeps state, so the result is the same whether the session was
started a second ago in this process or recovered from the store after a
reload. A clock that reads earlier than `start_time` (skew between devices)
yields the full planned duration rather than a value above it.
"""

from __future__ import annotations

import math

from .session import Session


def _effective_now(session: Session, now: float) -> float:
    # A paused session stops accruing at the pause instant; an ended one at its end.
    if session.paused_at is not None and session.is_active:
        return session.paused_at
    if session.end_time is not None:
        return session.end_time
    return now


def elapsed(session: Session, now: float) -> float:
    spent = _effective_now(session, now) - session.start_time
    return min(float(session.planned_duration_seconds), max(0.0, spent))


def remaining(session: Session, now: float) -> int:
    """Whole seconds left, rounded up so 0 is only reported at true expiry."""
    left = session.planned_duration_seconds - elapsed(session, now)
    return max(0, min(session.planned_duration_seconds, math.ceil(left)))


def progress_fraction(session: Session, now: float) -> float:
    planned = session.planned_duration_seconds
    if planned <= 0:
        return 1.0
    return 1.0 - remaining(session, now) / planned


def expires_at(session: Session) -> float:
    return session.start_time + session.planned_duration_seconds


def is_expired(session: Session, now: float) -> bool:
    return remaining(session, now) == 0
