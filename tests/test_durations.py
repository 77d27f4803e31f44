"""Tests for the duration table and the long-break rule."""

import pytest

from focustab.settings import DEFAULTS
from focustab.timer.durations import (
    DEFAULT_DURATIONS,
    DurationTable,
    duration_for,
    is_long_break_due,
)
from focustab.timer.session import SessionType


class TestDurationFor:
    def test_pomodoro_is_25_minutes(self):
        assert duration_for(SessionType.POMODORO) == 1500

    def test_break_lengths(self):
        assert duration_for(SessionType.BREAK) == 300
        assert duration_for(SessionType.LONG_BREAK) == 900

    def test_focus_mode_types(self):
        assert duration_for(SessionType.DEEP_WORK) == 90 * 60
        assert duration_for(SessionType.SHORT_FOCUS) == 15 * 60
        assert duration_for(SessionType.LONG_FOCUS) == 120 * 60

    def test_custom_has_form_default(self):
        assert duration_for(SessionType.CUSTOM) == 3600

    def test_override_wins(self):
        assert duration_for(SessionType.CUSTOM, override=45 * 60) == 2700
        assert duration_for(SessionType.WORK, override=600) == 600

    def test_accepts_plain_string(self):
        assert duration_for("deep_work") == 5400

    @pytest.mark.parametrize("bad", [0, -60])
    def test_non_positive_override_rejected(self, bad):
        with pytest.raises(ValueError):
            duration_for(SessionType.CUSTOM, override=bad)

    def test_every_type_has_an_entry(self):
        assert set(DEFAULT_DURATIONS) == set(SessionType)


class TestLongBreakRule:
    @pytest.mark.parametrize("cycles,due", [
        (0, False), (1, False), (3, False), (4, True), (5, False), (8, True), (12, True),
    ])
    def test_every_fourth(self, cycles, due):
        assert is_long_break_due(cycles) is due

    def test_custom_interval(self):
        assert is_long_break_due(3, every=3)
        assert not is_long_break_due(4, every=3)


class TestDurationTable:
    def test_from_default_settings(self):
        table = DurationTable.from_settings(DEFAULTS)
        assert table.duration_for(SessionType.WORK) == 1500
        assert table.duration_for(SessionType.BREAK) == 300
        assert table.duration_for(SessionType.LONG_BREAK) == 900

    def test_tuned_lengths_apply_to_work_and_breaks(self):
        table = DurationTable(work_seconds=3000, short_break_seconds=600, long_break_seconds=1800)
        assert table.duration_for(SessionType.POMODORO) == 3000
        assert table.duration_for(SessionType.BREAK) == 600
        assert table.duration_for(SessionType.LONG_BREAK) == 1800
        # focus-mode lengths are unaffected
        assert table.duration_for(SessionType.DEEP_WORK) == 5400

    def test_break_type_after(self):
        table = DurationTable()
        assert table.break_type_after(1) == SessionType.BREAK
        assert table.break_type_after(4) == SessionType.LONG_BREAK
        assert table.break_type_after(5) == SessionType.BREAK
