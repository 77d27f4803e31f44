"""Tests for the per-day focus totals."""

from focustab.timer.session import Session, SessionType
from focustab.timer.stats import daily_focus_stats

# 2023-11-14 22:13:20 UTC
T0 = 1_700_000_000.0


def _ended(session_type, start, actual, planned=1500, **kw) -> Session:
    return Session(
        id=f"{session_type}-{start}",
        context="default-user",
        session_type=session_type,
        start_time=start,
        planned_duration_seconds=planned,
        is_active=False,
        end_time=start + actual,
        completion_rate=round(min(1.0, actual / planned), 4),
        actual_duration_seconds=int(actual),
        **kw,
    )


def test_empty():
    assert daily_focus_stats([]) == []


def test_active_sessions_are_skipped():
    running = Session(
        id="r", context="default-user", session_type=SessionType.WORK,
        start_time=T0, planned_duration_seconds=1500,
    )
    assert daily_focus_stats([running]) == []


def test_single_day_totals():
    day = daily_focus_stats([
        _ended(SessionType.POMODORO, T0, 1500),
        _ended(SessionType.BREAK, T0 + 1500, 300, planned=300),
        _ended(SessionType.POMODORO, T0 + 1800, 750),
    ])
    assert len(day) == 1
    d = day[0]
    assert d.date == "2023-11-14"
    assert d.work_sessions == 2
    assert d.completed_work_sessions == 1
    assert d.focus_minutes == 37.5
    assert d.break_minutes == 5.0
    assert d.avg_completion_rate == 0.75


def test_grouped_by_start_day_oldest_first():
    stats = daily_focus_stats([
        _ended(SessionType.DEEP_WORK, T0 + 86_400, 5400, planned=5400),
        _ended(SessionType.WORK, T0, 600),
    ])
    assert [d.date for d in stats] == ["2023-11-14", "2023-11-15"]
    assert stats[1].focus_minutes == 90.0


def test_break_only_day_has_zero_completion():
    stats = daily_focus_stats([_ended(SessionType.LONG_BREAK, T0, 900, planned=900)])
    assert stats[0].work_sessions == 0
    assert stats[0].avg_completion_rate == 0.0
    assert stats[0].break_minutes == 15.0
