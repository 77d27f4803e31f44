"""
/timer — the server-hosted controller for a context: start, pause, resume,
stop, and the current countdown.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from ...api.schemas import SessionOut, TimerStartRequest, TimerStateOut
from ...config import config
from ...timer.clock import fmt_mmss
from ...timer.controller import TimerSnapshot
from ...timer.errors import AlreadyActiveError, InvalidTransitionError, SessionStoreError

router = APIRouter(prefix="/timer", tags=["timer"])


def _get_registry(request: Request):
    return request.app.state.registry


def _get_controller(
    context: str = Query(default=config.default_context),
    registry=Depends(_get_registry),
):
    try:
        return registry.get(context)
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))


def _state_out(snap: TimerSnapshot) -> TimerStateOut:
    return TimerStateOut(
        context=snap.context,
        phase=snap.phase.value,
        session=SessionOut(**snap.session.to_dict()) if snap.session else None,
        remaining_seconds=snap.remaining_seconds,
        remaining_display=fmt_mmss(snap.remaining_seconds),
        progress=snap.progress,
        completed_cycles=snap.completed_cycles,
        next_session_type=snap.next_session_type,
        next_duration_seconds=snap.next_duration_seconds,
        expired_session_id=snap.expired.id if snap.expired else None,
        sync_pending=snap.sync_pending,
    )


@router.get("", response_model=TimerStateOut)
async def get_timer(ctl=Depends(_get_controller)):
    return _state_out(ctl.tick())


@router.post("/start", response_model=TimerStateOut)
async def start_timer(req: TimerStartRequest, ctl=Depends(_get_controller)):
    """Start a session; 409 if one is already running for the context."""
    try:
        ctl.start(
            session_type=req.session_type,
            duration_override=req.duration_seconds,
            blocked_sites=req.blocked_sites,
        )
    except AlreadyActiveError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except SessionStoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return _state_out(ctl.snapshot())


@router.post("/pause", response_model=TimerStateOut)
async def pause_timer(ctl=Depends(_get_controller)):
    try:
        return _state_out(ctl.pause())
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/resume", response_model=TimerStateOut)
async def resume_timer(ctl=Depends(_get_controller)):
    try:
        return _state_out(ctl.resume())
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))


@router.post("/stop", response_model=TimerStateOut)
async def stop_timer(ctl=Depends(_get_controller)):
    """End the running session early."""
    try:
        return _state_out(ctl.stop())
    except InvalidTransitionError as e:
        raise HTTPException(status_code=409, detail=str(e))
