"""
Shared pytest fixtures and configuration.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import focustab.settings as settings_mod
from focustab.api.app import create_app
from focustab.store.memory import InMemorySessionStore
from focustab.timer.controller import SessionController
from focustab.timer.durations import DurationTable

T0 = 1_700_000_000.0


class FakeClock:
    """Wall clock the test moves by hand."""

    def __init__(self, start: float = T0):
        self.t = start

    def now(self) -> float:
        return self.t

    def advance(self, seconds: float) -> float:
        self.t += seconds
        return self.t


@pytest.fixture(autouse=True)
def tmp_settings_file(tmp_path, monkeypatch):
    """
    Redirect the settings store to a fresh temp file for each test.
    Also resets the in-memory cache so each test starts clean.
    """
    fake_file = tmp_path / "settings.json"
    monkeypatch.setattr(settings_mod, "_FILE", fake_file)
    monkeypatch.setattr(settings_mod, "_current", {})
    yield fake_file


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def durations():
    return DurationTable(work_seconds=1500, short_break_seconds=300, long_break_seconds=900)


@pytest.fixture
def ctl(store, clock, durations):
    return SessionController(store, clock=clock, durations=durations)


@pytest.fixture
def app(store, clock):
    """A fresh app per test, backed by the in-memory store and the fake clock."""
    # Keep the background tick out of the way; tests tick through the API.
    return create_app(store=store, clock=clock, tick_interval_ms=3_600_000)


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
