"""
Duration Table — planned length of every session type, plus the
"every 4th completed work phase earns a long break" rule.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .session import SessionType

LONG_BREAK_EVERY = 4

DEFAULT_DURATIONS: Dict[SessionType, int] = {
    SessionType.WORK:        25 * 60,
    SessionType.POMODORO:    25 * 60,
    SessionType.DEEP_WORK:   90 * 60,
    SessionType.SHORT_FOCUS: 15 * 60,
    SessionType.LONG_FOCUS: 120 * 60,
    SessionType.CUSTOM:      60 * 60,   # form default only; callers pass their own
    SessionType.BREAK:        5 * 60,
    SessionType.LONG_BREAK:  15 * 60,
}


def duration_for(
    session_type: SessionType,
    override: Optional[int] = None,
    table: Mapping[SessionType, int] = DEFAULT_DURATIONS,
) -> int:
    """Planned seconds for *session_type*; a caller-supplied *override* wins."""
    if override is not None:
        if int(override) <= 0:
            raise ValueError("duration override must be a positive number of seconds")
        return int(override)
    return table[SessionType(session_type)]


def is_long_break_due(completed_cycles: int, every: int = LONG_BREAK_EVERY) -> bool:
    return completed_cycles > 0 and completed_cycles % every == 0


@dataclass(frozen=True)
class DurationTable:
    """
    Duration lookup bound to the user's tunable work/break lengths.
    Focus-mode types (deep_work, short_focus, ...) keep their fixed lengths.
    """
    work_seconds: int = DEFAULT_DURATIONS[SessionType.WORK]
    short_break_seconds: int = DEFAULT_DURATIONS[SessionType.BREAK]
    long_break_seconds: int = DEFAULT_DURATIONS[SessionType.LONG_BREAK]
    long_break_every: int = LONG_BREAK_EVERY

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "DurationTable":
        return cls(
            work_seconds=int(settings["work_seconds"]),
            short_break_seconds=int(settings["short_break_seconds"]),
            long_break_seconds=int(settings["long_break_seconds"]),
            long_break_every=int(settings["long_break_every"]),
        )

    def as_mapping(self) -> Dict[SessionType, int]:
        table = dict(DEFAULT_DURATIONS)
        table[SessionType.WORK] = self.work_seconds
        table[SessionType.POMODORO] = self.work_seconds
        table[SessionType.BREAK] = self.short_break_seconds
        table[SessionType.LONG_BREAK] = self.long_break_seconds
        return table

    def duration_for(self, session_type: SessionType, override: Optional[int] = None) -> int:
        return duration_for(session_type, override, self.as_mapping())

    def is_long_break_due(self, completed_cycles: int) -> bool:
        return is_long_break_due(completed_cycles, self.long_break_every)

    def break_type_after(self, completed_cycles: int) -> SessionType:
        if self.is_long_break_due(completed_cycles):
            return SessionType.LONG_BREAK
        return SessionType.BREAK
