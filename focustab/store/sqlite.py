"""
SQLite-backed session store — the record the local API serves to every
dashboard view. One row per session; rows are only ever inserted or updated.
"""

from __future__ import annotations

import json
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional

from ..timer.errors import SessionNotFoundError, SessionStoreError
from ..timer.session import Session, SessionType
from .base import DEFAULT_CONTEXT, SessionStore, checked_changes, new_session

_COLUMNS = (
    "id", "context", "session_type", "start_time", "planned_duration_seconds",
    "is_active", "end_time", "completed_cycles", "completion_rate",
    "actual_duration_seconds", "paused_at", "blocked_sites", "created_at",
)


class SqliteSessionStore(SessionStore):
    """Thread-safe SQLite-backed session store."""

    def __init__(self, db_path: Path):
        self.db_path = db_path
        self._init_db()

    # ------------------------------------------------------------------
    # Write
    # ------------------------------------------------------------------

    def create_session(
        self,
        session_type: SessionType,
        planned_duration_seconds: int,
        *,
        context: str = DEFAULT_CONTEXT,
        start_time: Optional[float] = None,
        completed_cycles: int = 0,
        blocked_sites: Iterable[str] = (),
    ) -> Session:
        session = new_session(
            session_type, planned_duration_seconds, context,
            start_time, completed_cycles, blocked_sites,
        )
        row = _to_row(session)
        with self._conn() as conn:
            conn.execute(
                f"INSERT INTO sessions ({', '.join(_COLUMNS)}) "
                f"VALUES ({', '.join('?' for _ in _COLUMNS)})",
                [row[c] for c in _COLUMNS],
            )
        return session

    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        fields = checked_changes(self.get_session(session_id), changes)
        if fields:
            assignments = ", ".join(f"{k} = ?" for k in fields)
            params = [int(v) if isinstance(v, bool) else v for v in fields.values()]
            with self._conn() as conn:
                cur = conn.execute(
                    f"UPDATE sessions SET {assignments} WHERE id = ?",
                    [*params, session_id],
                )
                if cur.rowcount == 0:
                    raise SessionNotFoundError(session_id)
        return self.get_session(session_id)

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def get_session(self, session_id: str) -> Session:
        with self._conn() as conn:
            row = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM sessions WHERE id = ?",
                (session_id,),
            ).fetchone()
        if row is None:
            raise SessionNotFoundError(session_id)
        return _from_row(row)

    def list_sessions(
        self,
        context: str = DEFAULT_CONTEXT,
        date: Optional[str] = None,
        limit: int = 50,
    ) -> List[Session]:
        clauses = ["context = ?"]
        params: list = [context]

        if date:
            day_start = _day_start(date)
            clauses.append("start_time >= ? AND start_time < ?")
            params.extend([day_start, day_start + 86_400])
        params.append(limit)

        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM sessions "
                f"WHERE {' AND '.join(clauses)} "
                f"ORDER BY start_time DESC, created_at DESC LIMIT ?",
                params,
            ).fetchall()
        return [_from_row(r) for r in rows]

    def list_active_sessions(self, context: str = DEFAULT_CONTEXT) -> List[Session]:
        with self._conn() as conn:
            rows = conn.execute(
                f"SELECT {', '.join(_COLUMNS)} FROM sessions "
                f"WHERE context = ? AND is_active = 1 ORDER BY start_time DESC",
                (context,),
            ).fetchall()
        return [_from_row(r) for r in rows]

    def active_contexts(self) -> List[str]:
        """Every context that has at least one active session."""
        with self._conn() as conn:
            rows = conn.execute(
                "SELECT DISTINCT context FROM sessions WHERE is_active = 1"
            ).fetchall()
        return [r[0] for r in rows]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _init_db(self) -> None:
        with self._conn() as conn:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS sessions (
                    id                       TEXT    PRIMARY KEY,
                    context                  TEXT    NOT NULL,
                    session_type             TEXT    NOT NULL,
                    start_time               REAL    NOT NULL,
                    planned_duration_seconds INTEGER NOT NULL,
                    is_active                INTEGER NOT NULL DEFAULT 1,
                    end_time                 REAL,
                    completed_cycles         INTEGER NOT NULL DEFAULT 0,
                    completion_rate          REAL    NOT NULL DEFAULT 0.0,
                    actual_duration_seconds  INTEGER NOT NULL DEFAULT 0,
                    paused_at                REAL,
                    blocked_sites            TEXT    NOT NULL DEFAULT '[]',
                    created_at               REAL    NOT NULL
                )
                """
            )
            conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_sessions_ctx ON sessions(context, start_time)"
            )

    @contextmanager
    def _conn(self) -> Iterator[sqlite3.Connection]:
        try:
            conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        except sqlite3.Error as e:
            raise SessionStoreError(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
            conn.commit()
        except sqlite3.Error as e:
            raise SessionStoreError(str(e)) from e
        finally:
            conn.close()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _day_start(date: str) -> float:
    day = datetime.strptime(date, "%Y-%m-%d").replace(tzinfo=timezone.utc)
    return day.timestamp()


def _to_row(session: Session) -> Dict[str, Any]:
    row = session.to_dict()
    row["is_active"] = int(session.is_active)
    row["blocked_sites"] = json.dumps(session.blocked_sites)
    return row


def _from_row(row: tuple) -> Session:
    data = dict(zip(_COLUMNS, row))
    data["is_active"] = bool(data["is_active"])
    data["blocked_sites"] = json.loads(data["blocked_sites"] or "[]")
    return Session.from_dict(data)
