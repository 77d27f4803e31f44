"""
Session Lifecycle Controller — owns one context's timer.

Starts sessions through the session store, is ticked once per second,
detects expiry from wall-clock time, drives the cycle state machine and
writes completion back to the store. On startup `recover()` rebuilds the
timer purely from the stored record.

Persistence failures on update never lose a session: the change is kept in
a pending map, the local state carries on as believed, and every tick
retries the write.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, List, Optional

from . import elapsed
from .clock import Clock, SystemClock
from .durations import DurationTable
from .errors import (
    AlreadyActiveError,
    InvalidSessionUpdateError,
    InvalidTransitionError,
    SessionAlreadyEndedError,
    SessionNotFoundError,
    SessionStoreError,
)
from .machine import CycleStateMachine, Phase
from .session import Session, SessionType
from ..store.base import DEFAULT_CONTEXT, SessionStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TimerSnapshot:
    context: str
    phase: Phase
    session: Optional[Session]
    remaining_seconds: int
    progress: float
    completed_cycles: int
    next_session_type: SessionType
    next_duration_seconds: int
    expired: Optional[Session] = None    # session that expired on this tick
    sync_pending: bool = False


class SessionController:

    def __init__(
        self,
        store: SessionStore,
        clock: Optional[Clock] = None,
        durations: Optional[DurationTable] = None,
        context: str = DEFAULT_CONTEXT,
        auto_cycle: bool = False,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.context = context
        self.auto_cycle = auto_cycle
        self.machine = CycleStateMachine(durations)
        self.session: Optional[Session] = None
        self.last_session: Optional[Session] = None
        self._pending: Dict[str, Dict[str, Any]] = {}
        self._work_override: Optional[int] = None

    @property
    def durations(self) -> DurationTable:
        return self.machine.durations

    @durations.setter
    def durations(self, table: DurationTable) -> None:
        # Only affects sessions started from now on; planned durations are fixed.
        self.machine.durations = table

    @property
    def sync_pending(self) -> bool:
        return bool(self._pending)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(
        self,
        session_type: Optional[SessionType] = None,
        duration_override: Optional[int] = None,
        blocked_sites: Iterable[str] = (),
        now: Optional[float] = None,
    ) -> Session:
        """Create and persist a new session. Raises AlreadyActiveError if one is running."""
        now = self._now(now)
        if self.session is not None:
            self._adopt_if_ended()
        if self.session is not None:
            raise AlreadyActiveError(self.context, self.session.id)
        for other in self.store.list_active_sessions(self.context):
            if self._pending.get(other.id, {}).get("is_active", True):
                raise AlreadyActiveError(self.context, other.id)

        chosen = SessionType(session_type) if session_type else self.machine.next_session_type()
        planned = self.durations.duration_for(chosen, duration_override)
        session = self.store.create_session(
            chosen,
            planned,
            context=self.context,
            start_time=now,
            completed_cycles=self.machine.completed_cycles,
            blocked_sites=blocked_sites,
        )
        self.machine.start(chosen)
        if not chosen.is_break:
            self._work_override = duration_override
        self.session = session
        logger.info(
            "Session started: context=%s id=%s type=%s planned=%ss",
            self.context, session.id, chosen.value, planned,
        )
        return session

    def tick(self, now: Optional[float] = None) -> TimerSnapshot:
        """
        Recompute remaining time. Side effects happen only when the running
        session has reached zero: it is ended, the machine expires, and with
        auto_cycle the next phase starts straight away.
        """
        now = self._now(now)
        self._flush_pending()
        session = self.session
        if session is None or session.is_paused:
            return self.snapshot(now)
        if elapsed.remaining(session, now) > 0:
            return self.snapshot(now)
        if self._adopt_if_ended() is not None:
            return self.snapshot(now)
        return self._expire(session, now)

    def end(self, session: Optional[Session] = None, now: Optional[float] = None) -> Session:
        """
        End *session* (default: the running one) at *now*. Ending the running
        session is a manual stop. Ending an already-ended session is a no-op.
        """
        now = self._now(now)
        target = session or self.session
        if target is None:
            if self.last_session is not None:
                return self.last_session
            raise InvalidTransitionError("end", self.machine.phase.value)

        if self.last_session is not None and self.last_session.id == target.id:
            return self.last_session
        if target.has_ended:
            return target

        is_current = self.session is not None and self.session.id == target.id
        if is_current:
            adopted = self._adopt_if_ended()
            if adopted is not None:
                return adopted
            target = self.session  # type: ignore[assignment]
            self.machine.stop()
        else:
            try:
                stored = self.store.get_session(target.id)
            except SessionStoreError:
                stored = None
            if stored is not None and stored.has_ended:
                return stored

        ended = self._finish(target, now)
        logger.info(
            "Session ended early: context=%s id=%s completion=%.2f",
            self.context, ended.id, ended.completion_rate,
        )
        return ended

    def stop(self, now: Optional[float] = None) -> TimerSnapshot:
        now = self._now(now)
        running = self.session
        snap = self.tick(now)
        if self.session is None:
            if running is not None:
                return snap
            raise InvalidTransitionError("stop", self.machine.phase.value)
        self.end(now=now)
        return self.snapshot(now)

    def pause(self, now: Optional[float] = None) -> TimerSnapshot:
        now = self._now(now)
        self.tick(now)
        session = self.session
        if session is None:
            raise InvalidTransitionError("pause", self.machine.phase.value)
        self.machine.pause()
        self.session = replace(session, paused_at=now)
        self._persist(session.id, {"paused_at": now})
        logger.info(
            "Session paused: id=%s remaining=%ss",
            session.id, elapsed.remaining(self.session, now),
        )
        return self.snapshot(now)

    def resume(self, now: Optional[float] = None) -> TimerSnapshot:
        now = self._now(now)
        session = self.session
        if session is None or session.paused_at is None:
            raise InvalidTransitionError("resume", self.machine.phase.value)
        self.machine.resume()
        # Shift start forward by the pause so remaining is what it was at pause time.
        gap = max(0.0, now - session.paused_at)
        changes = {"start_time": session.start_time + gap, "paused_at": None}
        self.session = replace(session, **changes)
        self._persist(session.id, changes)
        logger.info("Session resumed: id=%s after %.0fs pause", session.id, gap)
        return self.snapshot(now)

    def recover(self, now: Optional[float] = None) -> TimerSnapshot:
        """
        Rebuild the timer from the store. The countdown comes only from the
        stored start time and planned duration.
        """
        now = self._now(now)
        active = self.store.list_active_sessions(self.context)
        self.session = None

        if not active:
            latest = self.store.latest_session(self.context)
            self._restore_idle(latest)
            return self.snapshot(now)

        session, stale = active[0], active[1:]
        for other in stale:
            # Two starts raced; the newest record wins.
            logger.warning(
                "Multiple active sessions for %s; ending older %s", self.context, other.id
            )
            self._finish(other, now)

        phase = Phase.ON_BREAK if session.session_type.is_break else Phase.WORKING
        self.machine.restore(
            Phase.PAUSED if session.is_paused else phase,
            completed_cycles=session.completed_cycles,
            paused_from=phase,
            base_work_type=None if session.session_type.is_break else session.session_type,
        )
        self.session = session
        logger.info(
            "Recovered session: context=%s id=%s remaining=%ss",
            self.context, session.id, elapsed.remaining(session, now),
        )
        return self.tick(now)

    def snapshot(self, now: Optional[float] = None) -> TimerSnapshot:
        now = self._now(now)
        session = self.session
        next_type = self.machine.next_session_type()
        next_override = None if next_type.is_break else self._work_override
        return TimerSnapshot(
            context=self.context,
            phase=self.machine.phase,
            session=session,
            remaining_seconds=elapsed.remaining(session, now) if session else 0,
            progress=elapsed.progress_fraction(session, now) if session else 0.0,
            completed_cycles=self.machine.completed_cycles,
            next_session_type=next_type,
            next_duration_seconds=self.durations.duration_for(next_type, next_override),
            sync_pending=self.sync_pending,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _now(self, now: Optional[float]) -> float:
        return self.clock.now() if now is None else float(now)

    def _adopt_if_ended(self) -> Optional[Session]:
        """
        If another view (a second tab, a direct PUT) already ended the running
        session, take the stored record as final instead of ending it again.
        Returns the adopted record, or None when the session is still live or
        the store cannot be read.
        """
        session = self.session
        if session is None:
            return None
        try:
            stored = self.store.get_session(session.id)
        except SessionStoreError:
            return None
        if not stored.has_ended:
            return None

        ran_out = stored.completion_rate >= 1.0 and self.machine.phase != Phase.PAUSED
        if ran_out:
            self.machine.expire()
        else:
            self.machine.stop()
        self._pending.pop(session.id, None)
        self.session = None
        self.last_session = stored
        logger.info(
            "Session %s was ended elsewhere at %s; adopting stored record",
            stored.id, stored.end_time,
        )
        return stored

    def _expire(self, session: Session, now: float) -> TimerSnapshot:
        next_type = self.machine.expire()
        ended = self._finish(
            session,
            min(now, elapsed.expires_at(session)),
            completed_cycles=self.machine.completed_cycles,
        )
        logger.info(
            "Session expired: context=%s id=%s completed_cycles=%d next=%s",
            self.context, ended.id, self.machine.completed_cycles, next_type.value,
        )
        if self.auto_cycle:
            override = None if next_type.is_break else self._work_override
            try:
                self.start(next_type, override, blocked_sites=ended.blocked_sites, now=now)
            except (AlreadyActiveError, SessionStoreError) as e:
                logger.warning("Auto-cycle could not start %s: %s", next_type.value, e)
        return replace(self.snapshot(now), expired=ended)

    def _finish(self, session: Session, end_time: float, **extra: Any) -> Session:
        start = session.start_time
        if session.paused_at is not None:
            # Time spent paused does not count toward the session.
            start += max(0.0, end_time - session.paused_at)
        end_time = max(end_time, start)
        actual = end_time - start
        changes: Dict[str, Any] = {
            "start_time": start,
            "end_time": end_time,
            "is_active": False,
            "paused_at": None,
            "completion_rate": round(min(1.0, actual / session.planned_duration_seconds), 4),
            "actual_duration_seconds": int(actual),
            **extra,
        }
        ended = replace(session, **changes)
        if self.session is not None and self.session.id == session.id:
            self.session = None
            self.last_session = ended
        self._persist(session.id, changes)
        return ended

    def _persist(self, session_id: str, changes: Dict[str, Any]) -> Optional[Session]:
        merged = {**self._pending.pop(session_id, {}), **changes}
        try:
            return self.store.update_session(session_id, merged)
        except SessionNotFoundError:
            logger.error("Session %s no longer exists in the store; dropping update", session_id)
            return None
        except SessionAlreadyEndedError:
            logger.warning("Session %s was already ended in the store; dropping update", session_id)
            self._take_stored_end(session_id)
            return None
        except InvalidSessionUpdateError as e:
            logger.error("Store rejected update of session %s; dropping it: %s", session_id, e)
            return None
        except SessionStoreError as e:
            logger.warning("Persist of session %s failed, retrying next tick: %s", session_id, e)
            self._pending[session_id] = merged
            return None

    def _take_stored_end(self, session_id: str) -> None:
        """The store's end of *session_id* wins over whatever we believed locally."""
        if self.session is not None and self.session.id == session_id:
            self._adopt_if_ended()
        elif self.last_session is not None and self.last_session.id == session_id:
            try:
                self.last_session = self.store.get_session(session_id)
            except SessionStoreError as e:
                logger.warning("Could not reload ended session %s: %s", session_id, e)

    def _flush_pending(self) -> None:
        for session_id in list(self._pending):
            self._persist(session_id, {})

    def _restore_idle(self, latest: Optional[Session]) -> None:
        if latest is None:
            self.machine.restore(Phase.IDLE, completed_cycles=0)
            return
        finished_work = (
            not latest.session_type.is_break and latest.completion_rate >= 1.0
        )
        self.machine.restore(
            Phase.IDLE,
            completed_cycles=latest.completed_cycles,
            break_ready=finished_work,
            base_work_type=None if latest.session_type.is_break else latest.session_type,
        )
        self.last_session = latest


class ControllerRegistry:
    """One controller per owning context, created and recovered on first use."""

    def __init__(
        self,
        store: SessionStore,
        clock: Optional[Clock] = None,
        durations: Optional[DurationTable] = None,
        auto_cycle: bool = False,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.durations = durations or DurationTable()
        self.auto_cycle = auto_cycle
        self._controllers: Dict[str, SessionController] = {}

    def get(self, context: str = DEFAULT_CONTEXT) -> SessionController:
        ctl = self._controllers.get(context)
        if ctl is None:
            ctl = SessionController(
                self.store,
                clock=self.clock,
                durations=self.durations,
                context=context,
                auto_cycle=self.auto_cycle,
            )
            ctl.recover()
            self._controllers[context] = ctl
        return ctl

    def contexts(self) -> List[str]:
        return list(self._controllers)

    def recover_all(self) -> None:
        for context in self.store.active_contexts():
            self.get(context)

    def tick_all(self) -> List[TimerSnapshot]:
        return [ctl.tick() for ctl in self._controllers.values()]

    def apply_settings(self, durations: DurationTable, auto_cycle: bool) -> None:
        self.durations = durations
        self.auto_cycle = auto_cycle
        for ctl in self._controllers.values():
            ctl.durations = durations
            ctl.auto_cycle = auto_cycle
