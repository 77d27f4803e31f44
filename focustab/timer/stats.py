"""
Per-day focus totals over ended sessions, for the dashboard's today summary.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List

from .clock import utc_date
from .session import Session


@dataclass
class DailyFocusStats:
    """Aggregate statistics for a single calendar day (UTC)."""
    date: str                       # "YYYY-MM-DD"
    work_sessions: int
    completed_work_sessions: int    # ran to expiry (completion 1.0)
    focus_minutes: float
    break_minutes: float
    avg_completion_rate: float      # over work sessions only


def daily_focus_stats(sessions: Iterable[Session]) -> List[DailyFocusStats]:
    """Group ended sessions by the UTC date they started on, oldest day first."""
    by_date: Dict[str, List[Session]] = {}
    for s in sessions:
        if s.end_time is None:
            continue
        by_date.setdefault(utc_date(s.start_time), []).append(s)

    result = []
    for day in sorted(by_date):
        work = [s for s in by_date[day] if not s.session_type.is_break]
        breaks = [s for s in by_date[day] if s.session_type.is_break]
        rates = [s.completion_rate for s in work]
        result.append(DailyFocusStats(
            date=day,
            work_sessions=len(work),
            completed_work_sessions=sum(1 for s in work if s.completion_rate >= 1.0),
            focus_minutes=round(sum(s.actual_duration_seconds for s in work) / 60.0, 1),
            break_minutes=round(sum(s.actual_duration_seconds for s in breaks) / 60.0, 1),
            avg_completion_rate=round(sum(rates) / len(rates), 4) if rates else 0.0,
        ))
    return result
