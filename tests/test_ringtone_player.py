"""Ringtone resolution and playback tests."""

import asyncio

from exitcall.constants import SCREEN_INCOMING_CALL
from exitcall.errors import PlaybackFailure
from exitcall.services.call_session import CallSessionMachine
from exitcall.services.ringtone_player import (
    FfplayBackend,
    RingtonePlayer,
    SimulatedAudioBackend,
    get_audio_backend,
    resolve_ringtone_url,
)


class FakeBackend:
    def __init__(self):
        self.played = []
        self.stopped = []

    def play_loop(self, url, volume):
        self.played.append((url, volume))
        return f"handle-{len(self.played)}"

    def stop(self, handle):
        self.stopped.append(handle)


class FailingBackend:
    def play_loop(self, url, volume):
        raise PlaybackFailure("autoplay blocked")

    def stop(self, handle):
        raise AssertionError("nothing to stop")


class TestResolveRingtone:
    def test_custom_upload_wins(self):
        assert resolve_ringtone_url("Urgent", "https://cdn.example.com/mine.m4a") == "https://cdn.example.com/mine.m4a"

    def test_builtin_maps_to_bundled_sound(self, monkeypatch):
        monkeypatch.setenv("RINGTONE_BASE_URL", "https://sounds.example.com/phone/")
        assert resolve_ringtone_url("Classic iPhone") == "https://sounds.example.com/phone/telephone-ring-01a.mp3"
        assert resolve_ringtone_url("Urgent") == "https://sounds.example.com/phone/telephone-ring-03a.mp3"

    def test_vibration_only_is_silent(self):
        assert resolve_ringtone_url("Vibration Only") is None


class TestRingtonePlayer:
    def test_start_loops_at_fixed_volume(self):
        backend = FakeBackend()
        player = RingtonePlayer(backend)
        assert player.start("https://x/ring.mp3")
        assert player.is_playing
        assert backend.played == [("https://x/ring.mp3", 50)]

    def test_stop_halts_once(self):
        backend = FakeBackend()
        player = RingtonePlayer(backend)
        player.start("https://x/ring.mp3")
        player.stop()
        player.stop()
        assert backend.stopped == ["handle-1"]
        assert not player.is_playing

    def test_restart_stops_previous_loop(self):
        backend = FakeBackend()
        player = RingtonePlayer(backend)
        player.start("https://x/a.mp3")
        player.start("https://x/b.mp3")
        assert backend.stopped == ["handle-1"]

    def test_no_url_plays_nothing(self):
        backend = FakeBackend()
        player = RingtonePlayer(backend)
        assert not player.start(None)
        assert backend.played == []

    def test_playback_failure_is_not_fatal(self):
        player = RingtonePlayer(FailingBackend())
        assert not player.start("https://x/ring.mp3")
        assert not player.is_playing
        player.stop()

    def test_missing_ffplay_binary_raises_playback_failure(self):
        backend = FfplayBackend(binary="/nonexistent/ffplay-binary")
        try:
            backend.play_loop("https://x/ring.mp3", 50)
        except PlaybackFailure:
            pass
        else:
            raise AssertionError("expected PlaybackFailure")

    def test_backend_selection(self, monkeypatch):
        monkeypatch.setenv("SIMULATE_AUDIO", "true")
        assert isinstance(get_audio_backend(), SimulatedAudioBackend)
        monkeypatch.setenv("SIMULATE_AUDIO", "false")
        assert isinstance(get_audio_backend(), FfplayBackend)


class TestPlaybackInCallFlow:
    def test_call_surfaces_even_when_audio_fails(self, store, recording_sleep):
        machine = CallSessionMachine(
            db=store, player_factory=lambda: RingtonePlayer(FailingBackend()), sleep=recording_sleep
        )

        async def scenario():
            handle = await machine.start_call("Mom", 2, "https://x/ring.mp3")
            await handle.trigger.wait()
            await machine.accept(handle.session_id)
            return handle

        handle = asyncio.run(scenario())
        screens = [route.screen for route in machine.navigator.history]
        assert screens[0] == SCREEN_INCOMING_CALL
        assert store.get_session(handle.session_id)["status"] == "active"

    def test_accept_silences_real_player(self, store, recording_sleep):
        backend = FakeBackend()
        machine = CallSessionMachine(db=store, player_factory=lambda: RingtonePlayer(backend), sleep=recording_sleep)

        async def scenario():
            handle = await machine.start_call("Mom", 2, "https://x/ring.mp3")
            await handle.trigger.wait()
            assert machine.is_ringing(handle.session_id)
            await machine.accept(handle.session_id)
            return handle

        handle = asyncio.run(scenario())
        assert backend.stopped == ["handle-1"]
        assert not machine.is_ringing(handle.session_id)
