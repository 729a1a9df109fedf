from typing import Callable, List, Optional
from urllib.parse import urlencode
import logging

from ..constants import SCREEN_HOME, SCREEN_INCOMING_CALL, SCREEN_IN_CALL
from ..schemas.pydantic_schemas import NavigationRead

logger = logging.getLogger(__name__)

SCREENS = (SCREEN_HOME, SCREEN_INCOMING_CALL, SCREEN_IN_CALL)

# Parameters each screen needs to render; optional ones are not listed
REQUIRED_PARAMS = {
    SCREEN_HOME: (),
    SCREEN_INCOMING_CALL: ("sessionId", "caller"),
    SCREEN_IN_CALL: ("sessionId", "caller"),
}


def create_page_url(route: NavigationRead) -> str:
    url = f"/{route.screen}"
    if route.params:
        url += "?" + urlencode(route.params)
    return url


class Navigator:
    """Receives screen-transition requests from the core and keeps the current route.

    The presentation layer either polls `current` or subscribes to be told about
    every transition. The screen stack itself is not managed here.
    """

    def __init__(self) -> None:
        self.current = NavigationRead(screen=SCREEN_HOME)
        self.history: List[NavigationRead] = []
        self._listeners: List[Callable[[NavigationRead], None]] = []

    def navigate(self, screen: str, **params: Optional[str]) -> NavigationRead:
        if screen not in SCREENS:
            raise ValueError(f"Unknown screen {screen!r}")
        clean = {k: str(v) for k, v in params.items() if v is not None}
        missing = [k for k in REQUIRED_PARAMS[screen] if k not in clean]
        if missing:
            raise ValueError(f"Screen {screen} requires {', '.join(missing)}")
        route = NavigationRead(screen=screen, params=clean)
        self.history.append(route)
        self.current = route
        logger.info(f"Navigate -> {create_page_url(route)}")
        for listener in list(self._listeners):
            listener(route)
        return route

    def subscribe(self, listener: Callable[[NavigationRead], None]) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe
