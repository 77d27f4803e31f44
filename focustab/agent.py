"""
Focus agent — the server-synced Focus-Mode widget as a background thread.

Runs its own SessionController against the local API's /sessions routes:
1. Recovers any active session for its context from the server record
2. Optionally starts a session if none is running
3. Ticks once per second; expiry and completion are written back to the server

Stopping the agent leaves a running session active on the server, which is
the resumable state the next agent (or a reload) recovers from.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from .store.http import HttpSessionStore
from .timer.clock import fmt_mmss
from .timer.controller import SessionController, TimerSnapshot
from .timer.durations import DurationTable
from .timer.errors import AlreadyActiveError, FocusTimerError
from .timer.session import SessionType

logger = logging.getLogger(__name__)


class FocusAgent(threading.Thread):

    def __init__(
        self,
        engine_url: str = "http://127.0.0.1:8765",
        context: str = "focus-mode",
        poll_interval_s: float = 1.0,
        auto_cycle: bool = False,
        start_type: Optional[SessionType] = None,
        duration_seconds: Optional[int] = None,
        on_tick: Optional[Callable[[TimerSnapshot], None]] = None,
        controller: Optional[SessionController] = None,
    ):
        super().__init__(daemon=True, name="FocusTab-Agent")
        self.poll_interval_s = poll_interval_s
        # Only a store the agent created itself is closed on stop.
        self._own_store: Optional[HttpSessionStore] = None
        if controller is None:
            self._own_store = HttpSessionStore(engine_url)
            controller = SessionController(
                self._own_store,
                durations=DurationTable(),
                context=context,
                auto_cycle=auto_cycle,
            )
        self.controller = controller
        self.start_type = start_type
        self.duration_seconds = duration_seconds
        self.on_tick = on_tick
        self.last_snapshot: Optional[TimerSnapshot] = None
        self._recovered = False
        self._stop_event = threading.Event()

    # ------------------------------------------------------------------
    # Thread lifecycle
    # ------------------------------------------------------------------

    def stop(self) -> None:
        self._stop_event.set()
        if not self.is_alive():
            self._close_store()

    def run(self) -> None:
        try:
            self._boot()
            while not self._stop_event.is_set():
                self._tick()
                self._stop_event.wait(self.poll_interval_s)
        finally:
            self._close_store()

    def _close_store(self) -> None:
        store, self._own_store = self._own_store, None
        if store is not None:
            store.close()

    # ------------------------------------------------------------------
    # Timer logic
    # ------------------------------------------------------------------

    def _boot(self) -> None:
        """
        Recover the context and start the requested session if none is running.
        Until this succeeds it is retried on every tick.
        """
        ctl = self.controller
        try:
            snap = ctl.recover()
            if snap.session is None and self.start_type is not None:
                ctl.start(self.start_type, self.duration_seconds)
        except AlreadyActiveError as e:
            logger.warning("Agent not starting %s: %s", self.start_type, e)
        except FocusTimerError as e:
            logger.warning("Agent could not recover %s, retrying: %s", ctl.context, e)
            return
        self._recovered = True

    def _tick(self) -> None:
        if not self._recovered:
            self._boot()
        try:
            snap = self.controller.tick()
        except FocusTimerError as e:
            logger.warning("Agent tick failed: %s", e)
            return
        self.last_snapshot = snap
        if self.on_tick is not None:
            self.on_tick(snap)


# ---------------------------------------------------------------------------
# Standalone entry point
# ---------------------------------------------------------------------------

def _print_snapshot(snap: TimerSnapshot) -> None:
    if snap.expired is not None:
        print(f"\n{snap.expired.session_type.value} finished — next: {snap.next_session_type.value}")
    if snap.session is not None:
        print(f"\r{snap.phase.value:<9} {fmt_mmss(snap.remaining_seconds)}", end="", flush=True)


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(description="FocusTab sync agent")
    parser.add_argument("--url", default="http://127.0.0.1:8765", help="Engine API URL")
    parser.add_argument("--context", default="focus-mode", help="Owning context for sessions")
    parser.add_argument(
        "--start", choices=[t.value for t in SessionType], default=None,
        help="Start this session type if none is running",
    )
    parser.add_argument("--minutes", type=int, default=None, help="Custom duration (minutes)")
    parser.add_argument("--auto-cycle", action="store_true", help="Roll into the next phase automatically")
    args = parser.parse_args()

    agent = FocusAgent(
        engine_url=args.url,
        context=args.context,
        auto_cycle=args.auto_cycle,
        start_type=SessionType(args.start) if args.start else None,
        duration_seconds=args.minutes * 60 if args.minutes else None,
        on_tick=_print_snapshot,
    )
    agent.start()
    print(f"Focus agent running (context {args.context!r} → {args.url})")
    try:
        while agent.is_alive():
            time.sleep(1)
    except KeyboardInterrupt:
        print("\nStopping…")
        agent.stop()
        agent.join(timeout=5)


if __name__ == "__main__":
    main()
