"""
Remote session store — the server-synced Focus-Mode widget's view of the
local API's /sessions routes.

Every transport or server failure surfaces as SessionStoreError so the
controller can keep its believed state and retry on the next tick.
"""

from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional

import httpx

from ..timer.errors import (
    InvalidSessionUpdateError,
    SessionAlreadyEndedError,
    SessionNotFoundError,
    SessionStoreError,
)
from ..timer.session import Session, SessionType
from .base import DEFAULT_CONTEXT, SessionStore, clean_changes


class HttpSessionStore(SessionStore):

    def __init__(
        self,
        base_url: str = "http://127.0.0.1:8765",
        timeout_s: float = 3.0,
        client: Optional[httpx.Client] = None,
    ):
        self._client = client or httpx.Client(base_url=base_url.rstrip("/"), timeout=timeout_s)

    def close(self) -> None:
        self._client.close()

    # ------------------------------------------------------------------
    # SessionStore
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
        body: Dict[str, Any] = {
            "session_type": SessionType(session_type).value,
            "planned_duration_seconds": int(planned_duration_seconds),
            "context": context,
            "completed_cycles": completed_cycles,
            "blocked_sites": list(blocked_sites),
        }
        if start_time is not None:
            body["start_time"] = start_time
        return Session.from_dict(self._request("POST", "/sessions", json=body))

    def update_session(self, session_id: str, changes: Dict[str, Any]) -> Session:
        data = self._request("PUT", f"/sessions/{session_id}", json=clean_changes(changes))
        return Session.from_dict(data)

    def get_session(self, session_id: str) -> Session:
        return Session.from_dict(self._request("GET", f"/sessions/{session_id}"))

    def list_sessions(
        self,
        context: str = DEFAULT_CONTEXT,
        date: Optional[str] = None,
        limit: int = 50,
    ) -> List[Session]:
        params: Dict[str, Any] = {"context": context, "limit": limit}
        if date:
            params["date"] = date
        return [Session.from_dict(d) for d in self._request("GET", "/sessions", params=params)]

    def list_active_sessions(self, context: str = DEFAULT_CONTEXT) -> List[Session]:
        params = {"context": context, "active": "true"}
        return [Session.from_dict(d) for d in self._request("GET", "/sessions", params=params)]

    def active_contexts(self) -> List[str]:
        return list(self._request("GET", "/sessions/contexts"))

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            resp = self._client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise SessionStoreError(f"{method} {path} failed: {e}") from e
        session_id = path.rsplit("/", 1)[-1]
        if resp.status_code == 404:
            raise SessionNotFoundError(session_id)
        if resp.status_code == 409:
            raise SessionAlreadyEndedError(session_id)
        if resp.status_code == 422:
            raise InvalidSessionUpdateError(f"{method} {path} rejected: {resp.text}")
        if resp.is_error:
            raise SessionStoreError(f"{method} {path} -> HTTP {resp.status_code}: {resp.text}")
        return resp.json()
