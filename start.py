"""
Convenience launcher — starts the focus timer API and (optionally) the
Focus-Mode sync agent.

Usage:
    python start.py                          # API only
    python start.py --agent                  # API + agent (recovers any running session)
    python start.py --agent --start pomodoro # API + agent, starting a pomodoro
"""

from __future__ import annotations

import argparse
import subprocess
import sys
import time

from focustab.timer.session import SessionType


def start_engine() -> subprocess.Popen:
    return subprocess.Popen(
        [sys.executable, "-m", "focustab.main"],
        stdout=sys.stdout,
        stderr=sys.stderr,
    )


def start_agent(start_type: str | None):
    """Run the sync agent in-process on a daemon thread."""
    from focustab.agent import FocusAgent
    agent = FocusAgent(start_type=SessionType(start_type) if start_type else None)
    agent.start()
    return agent


def main() -> None:
    parser = argparse.ArgumentParser(description="Start the FocusTab timer service")
    parser.add_argument("--agent", action="store_true", help="Also start the sync agent")
    parser.add_argument(
        "--start", choices=[t.value for t in SessionType], default=None,
        help="Session type the agent starts if none is running",
    )
    args = parser.parse_args()

    print("Starting FocusTab engine…")
    engine_proc = start_engine()

    if args.agent:
        time.sleep(1.5)  # give engine a moment to bind
        print("Starting sync agent…")
        start_agent(args.start)
        print("Sync agent running.")

    print("\nEngine → http://127.0.0.1:8765")
    print("Press Ctrl+C to stop.\n")

    try:
        engine_proc.wait()
    except KeyboardInterrupt:
        print("\nShutting down…")
        engine_proc.terminate()
        engine_proc.wait()


if __name__ == "__main__":
    main()
