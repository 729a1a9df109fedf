"""pytest configuration: every test runs against a fresh in-memory store."""

import asyncio

import pytest

from exitcall import db as db_module
from exitcall.services import call_session


class RecordingPlayer:
    """Stands in for RingtonePlayer and counts start/stop calls."""

    def __init__(self):
        self.started = []
        self.stop_calls = 0
        self._playing = False

    @property
    def is_playing(self):
        return self._playing

    def start(self, url):
        self.started.append(url)
        self._playing = bool(url)
        return self._playing

    def stop(self):
        self.stop_calls += 1
        self._playing = False


class PlayerFactory:
    def __init__(self):
        self.players = []

    def __call__(self):
        player = RecordingPlayer()
        self.players.append(player)
        return player


class RecordingSleep:
    """Records requested delays and returns on the next loop turn."""

    def __init__(self):
        self.delays = []

    async def __call__(self, delay):
        self.delays.append(delay)
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def isolated_store(monkeypatch, tmp_path):
    monkeypatch.delenv("SUPABASE_URL", raising=False)
    monkeypatch.delenv("SUPABASE_SERVICE_ROLE_KEY", raising=False)
    monkeypatch.setenv("SIMULATE_AUDIO", "true")
    monkeypatch.setenv("UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.setattr(db_module, "_db_instance", None)
    monkeypatch.setattr(call_session, "_machine", None)
    yield


@pytest.fixture
def store():
    return db_module.get_db()


@pytest.fixture
def player_factory():
    return PlayerFactory()


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def machine(store, player_factory, recording_sleep):
    return call_session.CallSessionMachine(db=store, player_factory=player_factory, sleep=recording_sleep)
