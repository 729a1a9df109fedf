from typing import Any, Awaitable, Callable, Dict, Optional
import asyncio
import logging

from ..constants import (
    STATUS_INCOMING,
    STATUS_ACTIVE,
    STATUS_ENDED,
    SCREEN_HOME,
    SCREEN_INCOMING_CALL,
    SCREEN_IN_CALL,
)
from ..db import get_db, utcnow_iso
from ..errors import InvalidTransition, SessionNotFound, StoreUnavailable
from .navigation import Navigator
from .ringtone_player import RingtonePlayer

# Set up logger
logger = logging.getLogger(__name__)


class ScheduledTrigger:
    """One-shot deferred action running on the event loop.

    Fires at most once, after `delay` seconds, and is never persisted: if the
    process goes away first the action is simply lost. cancel() is safe to call
    before or after it fires.
    """

    def __init__(self, delay: float, action: Callable[[], None], sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep) -> None:
        self.delay = delay
        self.fired = False
        self._action = action
        self._sleep = sleep
        self._task: Optional[asyncio.Task] = None

    def start(self) -> None:
        if self._task is not None:
            raise RuntimeError("Trigger already started")
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        await self._sleep(self.delay)
        self.fired = True
        try:
            self._action()
        except Exception:
            logger.exception("Deferred action failed")

    def cancel(self) -> bool:
        if self._task is None or self._task.done():
            return False
        return self._task.cancel()

    @property
    def done(self) -> bool:
        return self._task is not None and self._task.done()

    async def wait(self) -> None:
        """Block until the trigger fired or was cancelled."""
        if self._task is not None:
            await asyncio.wait({self._task})


class SessionHandle:
    def __init__(self, session: Dict[str, Any], delay_seconds: int, trigger: ScheduledTrigger) -> None:
        self.session = session
        self.delay_seconds = delay_seconds
        self.trigger = trigger

    @property
    def session_id(self) -> str:
        return self.session["id"]

    @property
    def caller(self) -> str:
        return self.session["caller"]

    @property
    def ringtone_url(self) -> Optional[str]:
        return self.session.get("ringtone_url")


class CallSessionMachine:
    """Drives a simulated call through incoming -> active -> ended.

    Every transition is a conditional store update on the expected status, so
    when two transitions race the first write wins and the other raises
    InvalidTransition. Navigation is only requested after the write succeeded.
    """

    def __init__(
        self,
        db: Optional[Any] = None,
        navigator: Optional[Navigator] = None,
        player_factory: Callable[[], RingtonePlayer] = RingtonePlayer,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self._db = db
        self.navigator = navigator or Navigator()
        self._player_factory = player_factory
        self._sleep = sleep
        self._triggers: Dict[str, ScheduledTrigger] = {}
        self._players: Dict[str, RingtonePlayer] = {}

    @property
    def db(self):
        return self._db if self._db is not None else get_db()

    def is_scheduled(self, session_id: str) -> bool:
        return str(session_id) in self._triggers

    def is_ringing(self, session_id: str) -> bool:
        player = self._players.get(str(session_id))
        return bool(player and player.is_playing)

    async def start_call(self, caller: str, delay_seconds: int, ringtone_url: Optional[str] = None) -> SessionHandle:
        if delay_seconds <= 0:
            raise ValueError("delay_seconds must be a positive integer")
        # Durable first: the record exists even if the trigger is later lost
        session = self.db.create_session(caller, ringtone_url)
        session_id = session["id"]
        logger.info(f"Created session {session_id} for {caller}, ringing in {delay_seconds}s")

        # The playback handle belongs to the incoming state from here until accept/decline
        self._players[session_id] = self._player_factory()
        trigger = ScheduledTrigger(
            delay_seconds,
            lambda: self._surface_incoming(session_id, caller, ringtone_url),
            sleep=self._sleep,
        )
        self._triggers[session_id] = trigger
        trigger.start()
        return SessionHandle(session, delay_seconds, trigger)

    def _surface_incoming(self, session_id: str, caller: str, ringtone_url: Optional[str]) -> None:
        self._triggers.pop(session_id, None)
        try:
            session = self.db.get_session(session_id)
        except StoreUnavailable as e:
            logger.error(f"Incoming call {session_id} dropped, session unreadable: {e}")
            self._leave_incoming(session_id)
            return
        if not session or session.get("status") != STATUS_INCOMING:
            logger.info(f"Session {session_id} no longer incoming, not surfacing call")
            self._leave_incoming(session_id)
            return
        player = self._players.get(session_id)
        if player is not None:
            player.start(ringtone_url)
        self.navigator.navigate(
            SCREEN_INCOMING_CALL,
            sessionId=session_id,
            caller=caller,
            ringtoneUrl=ringtone_url,
        )

    def _transition(self, session_id: str, action: str, expected: str, patch: Dict[str, Any]) -> Dict[str, Any]:
        session_id = str(session_id)
        updated = self.db.update_session(session_id, expected, patch)
        if updated is None:
            current = self.db.get_session(session_id)
            if current is None:
                raise SessionNotFound(session_id)
            logger.warning(f"Rejected {action} on session {session_id} in status {current.get('status')}")
            raise InvalidTransition(session_id, action, current.get("status"), expected)
        logger.info(f"Session {session_id}: {expected} -> {updated.get('status')} ({action})")
        return updated

    def _leave_incoming(self, session_id: str) -> None:
        trigger = self._triggers.pop(session_id, None)
        if trigger is not None:
            trigger.cancel()
        player = self._players.pop(session_id, None)
        if player is not None:
            player.stop()

    async def accept(self, session_id: str) -> Dict[str, Any]:
        session = self._transition(session_id, "accept", STATUS_INCOMING, {"status": STATUS_ACTIVE})
        self._leave_incoming(session["id"])
        self.navigator.navigate(SCREEN_IN_CALL, sessionId=session["id"], caller=session["caller"])
        return session

    async def decline(self, session_id: str) -> Dict[str, Any]:
        session = self._transition(
            session_id, "decline", STATUS_INCOMING, {"status": STATUS_ENDED, "ended_time": utcnow_iso()}
        )
        self._leave_incoming(session["id"])
        self.navigator.navigate(SCREEN_HOME)
        return session

    async def end_call(self, session_id: str) -> Dict[str, Any]:
        session = self._transition(
            session_id, "end", STATUS_ACTIVE, {"status": STATUS_ENDED, "ended_time": utcnow_iso()}
        )
        self.navigator.navigate(SCREEN_HOME)
        return session

    def close(self) -> None:
        """Cancel pending triggers and silence any ringing call (application shutdown)."""
        for trigger in self._triggers.values():
            trigger.cancel()
        self._triggers.clear()
        for player in self._players.values():
            player.stop()
        self._players.clear()


_machine: Optional[CallSessionMachine] = None


def get_call_machine() -> CallSessionMachine:
    global _machine
    if _machine is None:
        _machine = CallSessionMachine()
    return _machine
