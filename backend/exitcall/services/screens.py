from typing import Any, Dict, Optional
import logging

from ..constants import STATUS_INCOMING, STATUS_ACTIVE, SCREEN_HOME, SCREEN_INCOMING_CALL, SCREEN_IN_CALL
from ..errors import InvalidTransition, SessionNotFound
from ..schemas.pydantic_schemas import CallStartRequest, NavigationRead, SettingsRead
from .call_session import CallSessionMachine, SessionHandle, get_call_machine
from .call_timer import CallTimer
from .ringtone_player import resolve_ringtone_url
from .ringtone_upload import RingtoneUploader, upload_custom_ringtone
from .settings_store import load_settings, save_settings

logger = logging.getLogger(__name__)


def _require_status(machine: CallSessionMachine, session_id: str, screen: str, status: str) -> Dict[str, Any]:
    # Status always comes from the store, never from navigation params
    session = machine.db.get_session(session_id)
    if session is None:
        raise SessionNotFound(session_id)
    if session.get("status") != status:
        raise InvalidTransition(session_id, f"show {screen}", session.get("status"), status)
    return session


class HomeScreen:
    """Staging screen: pick caller, delay and ringtone, then start the call."""

    def __init__(self, machine: Optional[CallSessionMachine] = None, uploader: Optional[RingtoneUploader] = None) -> None:
        self.machine = machine or get_call_machine()
        self.uploader = uploader

    def load(self) -> SettingsRead:
        return load_settings()

    def select_caller(self, caller: str) -> SettingsRead:
        return save_settings({"selected_caller": caller})

    def select_delay(self, delay_seconds: int) -> SettingsRead:
        return save_settings({"delay_seconds": delay_seconds})

    def select_ringtone(self, ringtone: str) -> SettingsRead:
        return save_settings({"ringtone": ringtone})

    def upload_ringtone(self, filename: str, content_type: Optional[str], data: bytes) -> SettingsRead:
        return upload_custom_ringtone(filename, content_type, data, uploader=self.uploader)

    async def start_call(self, overrides: Optional[CallStartRequest] = None) -> SessionHandle:
        settings = load_settings()
        overrides = overrides or CallStartRequest()
        caller = overrides.caller or settings.selected_caller
        delay = overrides.delay_seconds or settings.delay_seconds
        # An explicit built-in choice for this call beats the saved upload
        if overrides.ringtone:
            ringtone_url = resolve_ringtone_url(overrides.ringtone)
        else:
            ringtone_url = resolve_ringtone_url(settings.ringtone, settings.custom_ringtone_url)
        return await self.machine.start_call(caller, delay, ringtone_url)


class IncomingCallScreen:
    def __init__(self, session_id: str, caller: str, ringtone_url: Optional[str] = None, machine: Optional[CallSessionMachine] = None) -> None:
        self.session_id = session_id
        self.caller = caller
        self.ringtone_url = ringtone_url
        self.machine = machine or get_call_machine()

    def enter(self) -> Dict[str, Any]:
        return _require_status(self.machine, self.session_id, SCREEN_INCOMING_CALL, STATUS_INCOMING)

    async def accept(self) -> Dict[str, Any]:
        return await self.machine.accept(self.session_id)

    async def decline(self) -> Dict[str, Any]:
        return await self.machine.decline(self.session_id)


class InCallScreen:
    def __init__(self, session_id: str, caller: str, machine: Optional[CallSessionMachine] = None, timer: Optional[CallTimer] = None) -> None:
        self.session_id = session_id
        self.caller = caller
        self.machine = machine or get_call_machine()
        self.timer = timer or CallTimer()
        self.muted = False
        self.speaker = False

    @property
    def elapsed(self) -> str:
        return self.timer.display

    async def enter(self) -> Dict[str, Any]:
        session = _require_status(self.machine, self.session_id, SCREEN_IN_CALL, STATUS_ACTIVE)
        # Restarts from 00:00 on every entry
        self.timer.start()
        return session

    def toggle_mute(self) -> bool:
        self.muted = not self.muted
        return self.muted

    def toggle_speaker(self) -> bool:
        self.speaker = not self.speaker
        return self.speaker

    def leave(self) -> None:
        self.timer.stop()

    async def end_call(self) -> Dict[str, Any]:
        try:
            return await self.machine.end_call(self.session_id)
        finally:
            self.leave()


def screen_for_route(route: NavigationRead, machine: Optional[CallSessionMachine] = None):
    """Build the controller for a navigation request from its parameters alone."""
    params = route.params
    if route.screen == SCREEN_HOME:
        return HomeScreen(machine)
    if route.screen == SCREEN_INCOMING_CALL:
        return IncomingCallScreen(params["sessionId"], params.get("caller", "Unknown"), params.get("ringtoneUrl"), machine)
    if route.screen == SCREEN_IN_CALL:
        return InCallScreen(params["sessionId"], params.get("caller", "Unknown"), machine)
    raise ValueError(f"Unknown screen {route.screen!r}")
