"""Tests for the work/break cycle state machine."""

import pytest

from focustab.timer.durations import DurationTable
from focustab.timer.errors import InvalidTransitionError
from focustab.timer.machine import CycleStateMachine, Phase
from focustab.timer.session import SessionType


@pytest.fixture
def machine():
    return CycleStateMachine(DurationTable())


def _work_then_expire(m: CycleStateMachine) -> SessionType:
    m.start()
    return m.expire()


class TestTransitions:
    def test_starts_idle_and_ready_for_work(self, machine):
        assert machine.phase == Phase.IDLE
        assert machine.next_session_type() == SessionType.WORK

    def test_start_work(self, machine):
        assert machine.start(SessionType.POMODORO) == SessionType.POMODORO
        assert machine.phase == Phase.WORKING

    def test_work_expiry_goes_idle_with_break_ready(self, machine):
        machine.start()
        nxt = machine.expire()
        assert machine.phase == Phase.IDLE
        assert machine.completed_cycles == 1
        assert nxt == SessionType.BREAK
        assert machine.state.break_ready

    def test_start_after_work_is_a_break(self, machine):
        _work_then_expire(machine)
        assert machine.start() == SessionType.BREAK
        assert machine.phase == Phase.ON_BREAK

    def test_break_expiry_returns_to_base_work_type(self, machine):
        machine.start(SessionType.DEEP_WORK)
        machine.expire()
        machine.start()
        nxt = machine.expire()
        assert machine.phase == Phase.IDLE
        assert nxt == SessionType.DEEP_WORK
        assert machine.completed_cycles == 1

    def test_pause_and_resume_restore_phase(self, machine):
        _work_then_expire(machine)
        machine.start()
        machine.pause()
        assert machine.phase == Phase.PAUSED
        assert machine.resume() == Phase.ON_BREAK

    def test_stop_counts_nothing_and_drops_break(self, machine):
        _work_then_expire(machine)
        machine.start()
        machine.stop()
        assert machine.phase == Phase.IDLE
        assert machine.completed_cycles == 1
        assert machine.next_session_type() == SessionType.WORK

    def test_stop_work_does_not_count_cycle(self, machine):
        machine.start()
        machine.stop()
        assert machine.completed_cycles == 0

    def test_starting_work_when_break_ready_skips_break(self, machine):
        _work_then_expire(machine)
        machine.start(SessionType.WORK)
        assert machine.phase == Phase.WORKING
        assert not machine.state.break_ready


class TestIllegalTransitions:
    def test_cannot_start_twice(self, machine):
        machine.start()
        with pytest.raises(InvalidTransitionError):
            machine.start()

    def test_cannot_expire_idle(self, machine):
        with pytest.raises(InvalidTransitionError):
            machine.expire()

    def test_cannot_expire_while_paused(self, machine):
        machine.start()
        machine.pause()
        with pytest.raises(InvalidTransitionError):
            machine.expire()

    def test_cannot_resume_running(self, machine):
        machine.start()
        with pytest.raises(InvalidTransitionError):
            machine.resume()

    def test_cannot_stop_idle(self, machine):
        with pytest.raises(InvalidTransitionError):
            machine.stop()


class TestLongBreakCycle:
    def test_fourth_break_is_long(self, machine):
        breaks = []
        for _ in range(5):
            _work_then_expire(machine)
            breaks.append(machine.start())
            machine.expire()
        assert breaks == [
            SessionType.BREAK,
            SessionType.BREAK,
            SessionType.BREAK,
            SessionType.LONG_BREAK,
            SessionType.BREAK,
        ]
        assert machine.completed_cycles == 5

    def test_restore(self, machine):
        machine.restore(Phase.IDLE, completed_cycles=4, break_ready=True)
        assert machine.next_session_type() == SessionType.LONG_BREAK
