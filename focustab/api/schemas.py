"""
Pydantic schemas for the FastAPI local API.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..config import config
from ..timer.session import SessionType

# ── Session records ────────────────────────────────────────────────────────

class SessionIn(BaseModel):
    session_type: SessionType
    planned_duration_seconds: int = Field(..., gt=0)
    context: str = Field(default_factory=lambda: config.default_context)
    start_time: Optional[float] = None
    completed_cycles: int = Field(default=0, ge=0)
    blocked_sites: List[str] = Field(default_factory=list)


class SessionUpdate(BaseModel):
    """Partial update; only fields the client actually sends are applied."""
    start_time: Optional[float] = None
    is_active: Optional[bool] = None
    end_time: Optional[float] = None
    completed_cycles: Optional[int] = Field(default=None, ge=0)
    completion_rate: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    actual_duration_seconds: Optional[int] = Field(default=None, ge=0)
    paused_at: Optional[float] = None


class SessionOut(BaseModel):
    id: str
    context: str
    session_type: SessionType
    start_time: float
    planned_duration_seconds: int
    is_active: bool
    end_time: Optional[float]
    completed_cycles: int
    completion_rate: float
    actual_duration_seconds: int
    paused_at: Optional[float]
    blocked_sites: List[str]
    created_at: float


# ── Timer ──────────────────────────────────────────────────────────────────

class TimerStartRequest(BaseModel):
    session_type: Optional[SessionType] = Field(
        default=None, description="Omit to start whatever the cycle expects next"
    )
    duration_seconds: Optional[int] = Field(default=None, ge=60, le=300 * 60)
    blocked_sites: List[str] = Field(default_factory=list)


class TimerStateOut(BaseModel):
    context: str
    phase: str
    session: Optional[SessionOut]
    remaining_seconds: int
    remaining_display: str
    progress: float = Field(..., ge=0.0, le=1.0)
    completed_cycles: int
    next_session_type: SessionType
    next_duration_seconds: int
    expired_session_id: Optional[str] = None
    sync_pending: bool


# ── Analytics ──────────────────────────────────────────────────────────────

class DailyFocusOut(BaseModel):
    date: str
    work_sessions: int
    completed_work_sessions: int
    focus_minutes: float
    break_minutes: float
    avg_completion_rate: float
