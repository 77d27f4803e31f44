"""
/sessions — raw session-store routes. The server-synced Focus-Mode widget
runs its own controller against these (see store/http.py).
"""

from __future__ import annotations

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status

from ...api.schemas import DailyFocusOut, SessionIn, SessionOut, SessionUpdate
from ...config import config
from ...timer.errors import (
    InvalidSessionUpdateError,
    SessionAlreadyEndedError,
    SessionNotFoundError,
    SessionStoreError,
)
from ...timer.stats import daily_focus_stats

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _get_store(request: Request):
    return request.app.state.store


def _get_clock(request: Request):
    return request.app.state.registry.clock


def _out(session) -> SessionOut:
    return SessionOut(**session.to_dict())


@router.get("", response_model=List[SessionOut])
async def list_sessions(
    context: str = Query(default=config.default_context),
    date: Optional[str] = Query(
        default=None, pattern=r"^\d{4}-\d{2}-\d{2}$", description="UTC day, YYYY-MM-DD"
    ),
    active: Optional[bool] = Query(default=None, description="Only active (true) or ended (false)"),
    limit: int = Query(default=50, ge=1, le=1000),
    store=Depends(_get_store),
):
    """Sessions for a context, newest first."""
    if active:
        sessions = store.list_active_sessions(context)[:limit]
    else:
        sessions = store.list_sessions(context, date=date, limit=limit)
        if active is False:
            sessions = [s for s in sessions if not s.is_active]
    return [_out(s) for s in sessions]


@router.post("", response_model=SessionOut, status_code=status.HTTP_201_CREATED)
async def create_session(req: SessionIn, store=Depends(_get_store)):
    try:
        session = store.create_session(
            req.session_type,
            req.planned_duration_seconds,
            context=req.context,
            start_time=req.start_time,
            completed_cycles=req.completed_cycles,
            blocked_sites=req.blocked_sites,
        )
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _out(session)


@router.get("/stats/daily", response_model=List[DailyFocusOut])
async def get_daily_stats(
    context: str = Query(default=config.default_context),
    days: int = Query(default=7, ge=1, le=90, description="How many days back to include"),
    store=Depends(_get_store),
    clock=Depends(_get_clock),
):
    """Focus and break minutes per UTC day. Defaults to the last 7 days."""
    since = clock.now() - days * 86_400
    sessions = [s for s in store.list_sessions(context, limit=10_000) if s.start_time >= since]
    return [DailyFocusOut(**d.__dict__) for d in daily_focus_stats(sessions)]


@router.get("/contexts", response_model=List[str])
async def list_active_contexts(store=Depends(_get_store)):
    """Contexts that currently have an active session."""
    return store.active_contexts()


@router.get("/{session_id}", response_model=SessionOut)
async def get_session(session_id: str, store=Depends(_get_store)):
    try:
        return _out(store.get_session(session_id))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")


@router.put("/{session_id}", response_model=SessionOut)
async def update_session(session_id: str, req: SessionUpdate, store=Depends(_get_store)):
    """Apply the fields present in the body; omitted fields stay as stored."""
    try:
        return _out(store.update_session(session_id, req.model_dump(exclude_unset=True)))
    except SessionNotFoundError:
        raise HTTPException(status_code=404, detail="Session not found")
    except SessionAlreadyEndedError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except InvalidSessionUpdateError as e:
        raise HTTPException(status_code=422, detail=str(e))
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
