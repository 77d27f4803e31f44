"""
/settings — read and update user-tunable timer settings.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Request
from pydantic import BaseModel, Field

from ...settings import DEFAULTS, duration_table, get_settings, update_settings

router = APIRouter(prefix="/settings", tags=["settings"])


class SettingsPatch(BaseModel):
    work_seconds:        Optional[int]  = Field(None, ge=60,  le=18000)
    short_break_seconds: Optional[int]  = Field(None, ge=60,  le=1800)
    long_break_seconds:  Optional[int]  = Field(None, ge=300, le=3600)
    long_break_every:    Optional[int]  = Field(None, ge=2,   le=12)
    auto_cycle:          Optional[bool] = None


@router.get("")
async def read_settings():
    """Return current settings with their defaults for reference."""
    current = get_settings()
    return {"settings": current, "defaults": DEFAULTS}


@router.put("")
async def write_settings(patch: SettingsPatch, request: Request):
    """
    Apply a partial update; persists to data/settings.json. New lengths apply
    to sessions started afterwards, never to one already running.
    """
    data = {k: v for k, v in patch.model_dump().items() if v is not None}
    current = update_settings(data)
    request.app.state.registry.apply_settings(duration_table(), current["auto_cycle"])
    return {"settings": current}
