"""
FastAPI application — local focus timer API.
Runs on http://127.0.0.1:8765 by default.

The store, clock and controller registry live on app.state so that each
call to create_app() produces a fully independent instance with no shared
module-level globals. This makes test isolation straightforward.

All timer mutation happens on the event loop: the route handlers are async
and the once-per-second tick runs as a task on the same loop, so exactly
one callback touches a controller at a time.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from ..config import config
from ..settings import duration_table, get_settings
from ..store.base import SessionStore
from ..store.sqlite import SqliteSessionStore
from ..timer.clock import Clock, SystemClock
from ..timer.controller import ControllerRegistry

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Background tick loop
# ---------------------------------------------------------------------------

async def _tick_loop(registry: ControllerRegistry, interval_ms: int) -> None:
    while True:
        await asyncio.sleep(interval_ms / 1000.0)
        try:
            registry.tick_all()
        except Exception:
            logger.exception("Timer tick failed")


# ---------------------------------------------------------------------------
# App factory
# ---------------------------------------------------------------------------

def create_app(
    store: Optional[SessionStore] = None,
    clock: Optional[Clock] = None,
    tick_interval_ms: Optional[int] = None,
) -> FastAPI:

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.store = store or SqliteSessionStore(config.data_dir / config.sessions_db)
        s = get_settings()
        app.state.registry = ControllerRegistry(
            app.state.store,
            clock=clock or SystemClock(),
            durations=duration_table(),
            auto_cycle=s["auto_cycle"],
        )
        # Recover every context with a live record so overdue sessions end on boot,
        # plus the dashboard's own context for its cycle count.
        app.state.registry.recover_all()
        app.state.registry.get(config.default_context)

        tick_task = asyncio.create_task(
            _tick_loop(app.state.registry, tick_interval_ms or config.tick_interval_ms)
        )

        yield

        tick_task.cancel()
        try:
            await tick_task
        except asyncio.CancelledError:
            pass

    app = FastAPI(
        title="Focus Tab",
        description="Focus session timer and work/break cycle API for the new-tab dashboard",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://localhost:3000", "null"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    from .routers import sessions, settings, timer

    app.include_router(sessions.router)
    app.include_router(timer.router)
    app.include_router(settings.router)

    @app.get("/health")
    async def health(request: Request):
        registry = getattr(request.app.state, "registry", None)
        contexts = registry.contexts() if registry is not None else []
        return {"status": "ok", "version": "0.1.0", "contexts": contexts}

    return app


app = create_app()
