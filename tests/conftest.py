"""
Shared pytest fixtures and configuration.
"""

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

import studytimer.settings as settings_mod
from studytimer.actions.notifications import NullNotifier
from studytimer.api.app import create_app
from studytimer.timer.clock import StudyTimer
from studytimer.timer.state import LocalStorage


class FakeClock:
    """Injectable epoch-ms clock; advance() moves time forward explicitly."""

    def __init__(self, start_ms: float = 1_700_000_000_000.0):
        self.now = start_ms

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class RecordingNotifier:
    """Notification sink that remembers every call."""

    def __init__(self):
        self.notifications = []
        self.tones = []

    def notify(self, title, body, require_interaction=False):
        self.notifications.append((title, body, require_interaction))
        return True

    def play_tone(self, kind):
        self.tones.append(kind)
        return True


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
    monkeypatch.setattr(settings_mod, "_current", {})


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def settings():
    """Mutable settings dict handed to the timer; tests flip flags in place."""
    return dict(settings_mod.DEFAULTS)


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(tmp_path / "local_storage.json")


@pytest.fixture
def timer(storage, notifier, settings, clock):
    return StudyTimer(storage, notifier=notifier, settings=lambda: settings, now_ms=clock)


@pytest.fixture
def app(tmp_path):
    """Create a fresh app instance per test, storing its data under tmp_path."""
    return create_app(data_dir=tmp_path / "data", notifier=NullNotifier())


@pytest_asyncio.fixture
async def client(app):
    """Async HTTP client wired directly to the ASGI app (no server needed)."""
    async with app.router.lifespan_context(app):
        async with AsyncClient(
            transport=ASGITransport(app=app), base_url="http://test"
        ) as ac:
            yield ac
