"""
Wall clock used by the session controller.

Remaining time is always derived from wall-clock deltas, so the controller
only ever needs "what time is it now" in unix seconds.
"""

from __future__ import annotations

import time
from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> float: ...


class SystemClock:
    def now(self) -> float:
        return time.time()


def utc_date(ts: float) -> str:
    """Return the UTC calendar date of *ts* as YYYY-MM-DD."""
    return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%Y-%m-%d")


def fmt_mmss(seconds: int) -> str:
    """Format a countdown as MM:SS (minutes may exceed 59)."""
    mins, secs = divmod(max(0, int(seconds)), 60)
    return f"{mins:02d}:{secs:02d}"
