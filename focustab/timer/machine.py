"""
Cycle State Machine — work / break phases with a long break after every
fourth completed work phase.

    IDLE --start(work)--> WORKING --expire--> IDLE (break ready)
    IDLE --start(break)--> ON_BREAK --expire--> IDLE
    WORKING|ON_BREAK --pause--> PAUSED --resume--> WORKING|ON_BREAK
    WORKING|ON_BREAK|PAUSED --stop--> IDLE

The machine only decides phases. Timing lives in elapsed.py and
persistence in controller.py.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .durations import DurationTable
from .errors import InvalidTransitionError
from .session import SessionType

logger = logging.getLogger(__name__)


class Phase(str, Enum):
    IDLE = "idle"
    WORKING = "working"
    ON_BREAK = "on_break"
    PAUSED = "paused"


_RUNNING = (Phase.WORKING, Phase.ON_BREAK)


@dataclass
class CycleState:
    phase: Phase = Phase.IDLE
    completed_cycles: int = 0
    break_ready: bool = False
    paused_from: Optional[Phase] = None
    base_work_type: SessionType = SessionType.WORK


class CycleStateMachine:

    def __init__(
        self,
        durations: Optional[DurationTable] = None,
        base_work_type: SessionType = SessionType.WORK,
    ):
        self.durations = durations or DurationTable()
        self.state = CycleState(base_work_type=base_work_type)

    @property
    def phase(self) -> Phase:
        return self.state.phase

    @property
    def completed_cycles(self) -> int:
        return self.state.completed_cycles

    def next_session_type(self) -> SessionType:
        """What a bare start() would begin from the current state."""
        if self.state.break_ready:
            return self.durations.break_type_after(self.state.completed_cycles)
        return self.state.base_work_type

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def start(self, session_type: Optional[SessionType] = None) -> SessionType:
        self._require("start", Phase.IDLE)
        chosen = SessionType(session_type) if session_type else self.next_session_type()
        if chosen.is_break:
            self.state.phase = Phase.ON_BREAK
        else:
            # Starting work straight from "break ready" skips the break.
            self.state.phase = Phase.WORKING
            self.state.break_ready = False
            self.state.base_work_type = chosen
        logger.debug("cycle: start %s -> %s", chosen.value, self.state.phase.value)
        return chosen

    def expire(self) -> SessionType:
        """Phase ran to zero. Returns the session type the next start should use."""
        self._require("expire", *_RUNNING)
        if self.state.phase == Phase.WORKING:
            self.state.completed_cycles += 1
            self.state.break_ready = True
        else:
            self.state.break_ready = False
        self.state.phase = Phase.IDLE
        nxt = self.next_session_type()
        logger.debug(
            "cycle: expired, completed=%d next=%s",
            self.state.completed_cycles, nxt.value,
        )
        return nxt

    def pause(self) -> None:
        self._require("pause", *_RUNNING)
        self.state.paused_from = self.state.phase
        self.state.phase = Phase.PAUSED

    def resume(self) -> Phase:
        self._require("resume", Phase.PAUSED)
        self.state.phase = self.state.paused_from or Phase.WORKING
        self.state.paused_from = None
        return self.state.phase

    def stop(self) -> None:
        """Manual stop: no cycle is counted and the pending break is dropped."""
        self._require("stop", Phase.WORKING, Phase.ON_BREAK, Phase.PAUSED)
        self.state.phase = Phase.IDLE
        self.state.paused_from = None
        self.state.break_ready = False

    def restore(
        self,
        phase: Phase,
        completed_cycles: int,
        break_ready: bool = False,
        paused_from: Optional[Phase] = None,
        base_work_type: Optional[SessionType] = None,
    ) -> None:
        """Rebuild state from persisted records (recovery)."""
        self.state = CycleState(
            phase=phase,
            completed_cycles=completed_cycles,
            break_ready=break_ready,
            paused_from=paused_from if phase == Phase.PAUSED else None,
            base_work_type=base_work_type or self.state.base_work_type,
        )

    def _require(self, action: str, *allowed: Phase) -> None:
        if self.state.phase not in allowed:
            raise InvalidTransitionError(action, self.state.phase.value)
