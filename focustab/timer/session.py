"""
Session record — one timed work or break interval.

A session never stores its countdown. Remaining time is always recomputed
from `start_time` and `planned_duration_seconds` (see elapsed.py).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional


class SessionType(str, Enum):
    WORK = "work"
    DEEP_WORK = "deep_work"
    POMODORO = "pomodoro"
    SHORT_FOCUS = "short_focus"
    LONG_FOCUS = "long_focus"
    CUSTOM = "custom"
    BREAK = "break"
    LONG_BREAK = "long_break"

    @property
    def is_break(self) -> bool:
        return self in (SessionType.BREAK, SessionType.LONG_BREAK)


# Fields the end / pause bookkeeping is allowed to change after creation.
MUTABLE_FIELDS = frozenset({
    "start_time",
    "is_active",
    "end_time",
    "completed_cycles",
    "completion_rate",
    "actual_duration_seconds",
    "paused_at",
})


@dataclass
class Session:
    id: str
    context: str
    session_type: SessionType
    start_time: float
    planned_duration_seconds: int
    is_active: bool = True
    end_time: Optional[float] = None
    completed_cycles: int = 0
    completion_rate: float = 0.0
    actual_duration_seconds: int = 0
    paused_at: Optional[float] = None
    blocked_sites: List[str] = field(default_factory=list)
    created_at: float = 0.0

    @property
    def is_paused(self) -> bool:
        return self.is_active and self.paused_at is not None

    @property
    def has_ended(self) -> bool:
        return self.end_time is not None

    def to_dict(self) -> Dict[str, Any]:
        d = asdict(self)
        d["session_type"] = self.session_type.value
        return d

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Session":
        known = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}  # type: ignore[attr-defined]
        known["session_type"] = SessionType(known["session_type"])
        known["blocked_sites"] = list(known.get("blocked_sites") or [])
        return cls(**known)
