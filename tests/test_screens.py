"""Screen controller and in-call timer tests."""

import asyncio

import pytest

from exitcall.constants import SCREEN_HOME, SCREEN_INCOMING_CALL, SCREEN_IN_CALL
from exitcall.errors import InvalidTransition, SessionNotFound
from exitcall.schemas.pydantic_schemas import CallStartRequest
from exitcall.services.call_timer import CallTimer, format_elapsed
from exitcall.services.screens import (
    HomeScreen,
    InCallScreen,
    IncomingCallScreen,
    screen_for_route,
)
from exitcall.services.settings_store import save_settings


async def _spin(turns=20):
    for _ in range(turns):
        await asyncio.sleep(0)


class TestHomeScreen:
    def test_start_call_uses_saved_settings(self, machine):
        home = HomeScreen(machine)
        home.select_caller("Yamini")
        home.select_delay(10)
        save_settings({"custom_ringtone_url": "https://cdn.example.com/mine.mp3"})

        handle = asyncio.run(home.start_call())
        assert handle.caller == "Yamini"
        assert handle.delay_seconds == 10
        assert handle.ringtone_url == "https://cdn.example.com/mine.mp3"

    def test_overrides_apply_to_one_call_only(self, machine, monkeypatch):
        monkeypatch.setenv("RINGTONE_BASE_URL", "https://sounds.example.com")
        home = HomeScreen(machine)
        save_settings({"custom_ringtone_url": "https://cdn.example.com/mine.mp3"})

        handle = asyncio.run(home.start_call(CallStartRequest(caller="Dad", delay_seconds=2, ringtone="Urgent")))
        assert handle.caller == "Dad"
        assert handle.delay_seconds == 2
        assert handle.ringtone_url == "https://sounds.example.com/telephone-ring-03a.mp3"
        assert home.load().selected_caller == "Mom"

    def test_vibration_only_starts_silent_call(self, machine):
        home = HomeScreen(machine)
        home.select_ringtone("Vibration Only")
        handle = asyncio.run(home.start_call())
        assert handle.ringtone_url is None


class TestIncomingToInCall:
    def test_full_flow_through_routes(self, machine, store):
        """Each screen is rebuilt from the route alone and re-reads status from the store."""
        async def scenario():
            handle = await HomeScreen(machine).start_call(CallStartRequest(caller="Dad", delay_seconds=2))
            await handle.trigger.wait()

            incoming = screen_for_route(machine.navigator.current, machine)
            assert isinstance(incoming, IncomingCallScreen)
            assert incoming.enter()["status"] == "incoming"
            await incoming.accept()

            in_call = screen_for_route(machine.navigator.current, machine)
            assert isinstance(in_call, InCallScreen)
            assert in_call.caller == "Dad"
            await in_call.enter()
            assert in_call.timer.running
            await in_call.end_call()
            assert not in_call.timer.running
            return handle

        handle = asyncio.run(scenario())
        assert store.get_session(handle.session_id)["status"] == "ended"
        assert [r.screen for r in machine.navigator.history] == [SCREEN_INCOMING_CALL, SCREEN_IN_CALL, SCREEN_HOME]
        assert isinstance(screen_for_route(machine.navigator.current, machine), HomeScreen)

    def test_incoming_screen_refuses_answered_session(self, machine):
        async def scenario():
            handle = await machine.start_call("Mom", 2, None)
            await handle.trigger.wait()
            await machine.accept(handle.session_id)
            # A stale IncomingCall route must not show the call again
            screen = IncomingCallScreen(handle.session_id, "Mom", machine=machine)
            with pytest.raises(InvalidTransition):
                screen.enter()

        asyncio.run(scenario())

    def test_in_call_screen_requires_active(self, machine):
        async def scenario():
            handle = await machine.start_call("Mom", 2, None)
            screen = InCallScreen(handle.session_id, "Mom", machine=machine)
            with pytest.raises(InvalidTransition):
                await screen.enter()
            assert not screen.timer.running

        asyncio.run(scenario())

    def test_failed_end_call_still_stops_timer(self, machine, store):
        async def scenario():
            handle = await machine.start_call("Mom", 2, None)
            await handle.trigger.wait()
            await machine.accept(handle.session_id)
            screen = InCallScreen(handle.session_id, "Mom", machine=machine)
            await screen.enter()
            assert screen.timer.running
            # Ended elsewhere, so this screen's end transition is rejected
            store.update_session(handle.session_id, "active", {"status": "ended", "ended_time": "2026-01-01T00:00:00+00:00"})
            with pytest.raises(InvalidTransition):
                await screen.end_call()
            return screen

        screen = asyncio.run(scenario())
        assert not screen.timer.running

    def test_unknown_session(self, machine):
        with pytest.raises(SessionNotFound):
            IncomingCallScreen("missing", "Mom", machine=machine).enter()

    def test_toggles(self, machine):
        screen = InCallScreen("any", "Mom", machine=machine)
        assert screen.toggle_mute() is True
        assert screen.toggle_mute() is False
        assert screen.toggle_speaker() is True


class TestCallTimer:
    @pytest.mark.parametrize("seconds,expected", [(0, "00:00"), (9, "00:09"), (75, "01:15"), (600, "10:00")])
    def test_format_elapsed(self, seconds, expected):
        assert format_elapsed(seconds) == expected

    def test_ticks_and_resets_on_reentry(self, recording_sleep):
        ticks = []
        timer = CallTimer(on_tick=ticks.append, sleep=recording_sleep)

        async def scenario():
            timer.start()
            assert timer.seconds == 0
            await _spin()
            assert timer.seconds > 0
            first_run = timer.seconds
            timer.start()
            assert timer.seconds == 0
            assert timer.display == "00:00"
            await _spin()
            timer.stop()
            return first_run

        first_run = asyncio.run(scenario())
        assert ticks[:first_run] == list(range(1, first_run + 1))
        assert set(recording_sleep.delays) == {1.0}
        assert not timer.running
