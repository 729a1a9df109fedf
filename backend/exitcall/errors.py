class ExitCallError(Exception):
    """Base class for every error raised by the call simulation core."""


class InvalidTransition(ExitCallError):
    """A session transition was attempted from the wrong status."""

    def __init__(self, session_id: str, action: str, current_status: str, expected_status: str) -> None:
        self.session_id = session_id
        self.action = action
        self.current_status = current_status
        self.expected_status = expected_status
        super().__init__(
            f"Cannot {action} session {session_id}: status is '{current_status}', expected '{expected_status}'"
        )


class SessionNotFound(ExitCallError):
    def __init__(self, session_id: str) -> None:
        self.session_id = session_id
        super().__init__(f"Session {session_id} not found")


class StoreUnavailable(ExitCallError):
    """A record read or write against the backing store failed."""


class UnsupportedUpload(ExitCallError):
    def __init__(self, filename: str, content_type: str) -> None:
        self.filename = filename
        self.content_type = content_type
        super().__init__(f"Please upload an audio file ({filename!r} is {content_type or 'of unknown type'})")


class PlaybackFailure(ExitCallError):
    """Ringtone playback could not start. Logged by the player, never fatal."""
