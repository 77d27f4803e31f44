"""
Tests for the Focus-Mode sync agent. The agent is given a controller over the
in-memory store so its boot and tick steps run without a server.
"""

from __future__ import annotations

import pytest

from focustab.agent import FocusAgent
from focustab.store.memory import InMemorySessionStore
from focustab.timer.controller import SessionController
from focustab.timer.errors import SessionStoreError
from focustab.timer.machine import Phase
from focustab.timer.session import SessionType


class DownStore:
    """A store whose every call fails, like an unreachable server."""

    def __getattr__(self, name):
        def fail(*args, **kwargs):
            raise SessionStoreError("connection refused")
        return fail


class FlakyServer:
    """Wraps a real store; while `down` every call fails."""

    def __init__(self, inner):
        self.inner = inner
        self.down = True

    def __getattr__(self, name):
        attr = getattr(self.inner, name)
        if not callable(attr):
            return attr

        def call(*args, **kwargs):
            if self.down:
                raise SessionStoreError("connection refused")
            return attr(*args, **kwargs)
        return call


@pytest.fixture
def agent_ctl(store, clock, durations):
    return SessionController(store, clock=clock, durations=durations, context="focus-mode")


def test_boot_starts_requested_session(agent_ctl, store):
    agent = FocusAgent(controller=agent_ctl, start_type=SessionType.DEEP_WORK)
    agent._boot()
    active = store.list_active_sessions("focus-mode")
    assert len(active) == 1
    assert active[0].session_type == SessionType.DEEP_WORK
    assert active[0].planned_duration_seconds == 5400


def test_boot_recovers_instead_of_starting(agent_ctl, store, clock):
    existing = store.create_session(
        SessionType.SHORT_FOCUS, 900, context="focus-mode", start_time=clock.now() - 60
    )
    agent = FocusAgent(controller=agent_ctl, start_type=SessionType.DEEP_WORK)
    agent._boot()
    assert [s.id for s in store.list_active_sessions("focus-mode")] == [existing.id]
    assert agent_ctl.session.id == existing.id


def test_boot_with_custom_minutes(agent_ctl):
    agent = FocusAgent(
        controller=agent_ctl, start_type=SessionType.CUSTOM, duration_seconds=45 * 60
    )
    agent._boot()
    assert agent_ctl.session.planned_duration_seconds == 2700


def test_tick_reports_snapshot(agent_ctl, clock):
    seen = []
    agent = FocusAgent(controller=agent_ctl, start_type=SessionType.POMODORO, on_tick=seen.append)
    agent._boot()
    clock.advance(60)
    agent._tick()
    assert agent.last_snapshot.remaining_seconds == 1440
    assert seen == [agent.last_snapshot]


def test_tick_writes_expiry(agent_ctl, store, clock):
    agent = FocusAgent(controller=agent_ctl, start_type=SessionType.POMODORO)
    agent._boot()
    clock.advance(1500)
    agent._tick()
    snap = agent.last_snapshot
    assert snap.expired is not None
    assert snap.phase == Phase.IDLE
    assert store.get_session(snap.expired.id).is_active is False


def test_boot_survives_unreachable_server(clock, durations):
    ctl = SessionController(DownStore(), clock=clock, durations=durations, context="focus-mode")
    agent = FocusAgent(controller=ctl, start_type=SessionType.POMODORO)
    agent._boot()
    agent._tick()
    assert ctl.session is None
    assert agent.last_snapshot.phase == Phase.IDLE


def test_run_loop_stops(agent_ctl):
    agent = FocusAgent(controller=agent_ctl, poll_interval_s=0.01)
    agent.start()
    agent.stop()
    agent.join(timeout=2)
    assert not agent.is_alive()


def test_failed_boot_is_retried_on_tick(clock, durations):
    inner = InMemorySessionStore()
    existing = inner.create_session(
        SessionType.POMODORO, 1500, context="focus-mode", start_time=clock.now()
    )
    server = FlakyServer(inner)
    ctl = SessionController(server, clock=clock, durations=durations, context="focus-mode")
    agent = FocusAgent(controller=ctl)
    agent._boot()
    assert ctl.session is None

    server.down = False
    clock.advance(2000)
    agent._tick()
    stored = inner.get_session(existing.id)
    assert stored.is_active is False
    assert stored.end_time == existing.start_time + 1500
    assert agent.last_snapshot.phase == Phase.IDLE


def test_requested_start_happens_after_outage(clock, durations):
    inner = InMemorySessionStore()
    server = FlakyServer(inner)
    ctl = SessionController(server, clock=clock, durations=durations, context="focus-mode")
    agent = FocusAgent(controller=ctl, start_type=SessionType.DEEP_WORK)
    agent._boot()
    agent._tick()
    assert inner.list_active_sessions("focus-mode") == []

    server.down = False
    agent._tick()
    active = inner.list_active_sessions("focus-mode")
    assert [s.session_type for s in active] == [SessionType.DEEP_WORK]

    agent._tick()
    assert len(inner.list_active_sessions("focus-mode")) == 1


def test_stop_closes_own_client():
    agent = FocusAgent(engine_url="http://127.0.0.1:1")
    client = agent.controller.store._client
    agent.stop()
    assert client.is_closed
