from typing import Any, Optional
import os
import subprocess
import logging

from ..constants import BUILTIN_RINGTONE_FILES, DEFAULT_RINGTONE_BASE_URL, PLAYBACK_VOLUME
from ..errors import PlaybackFailure

# Set up logger
logger = logging.getLogger(__name__)


def resolve_ringtone_url(ringtone: Optional[str], custom_url: Optional[str] = None) -> Optional[str]:
    """Pick the sound to loop. An uploaded ringtone wins over the built-in choice.

    Returns None for "Vibration Only" (or an unknown name), meaning no audio.
    """
    if custom_url:
        return custom_url
    filename = BUILTIN_RINGTONE_FILES.get(ringtone or "")
    if not filename:
        return None
    base_url = os.getenv("RINGTONE_BASE_URL", DEFAULT_RINGTONE_BASE_URL)
    return f"{base_url.rstrip('/')}/{filename}"


class FfplayBackend:
    """Loops a sound through an ffplay subprocess. Stopping kills the process,
    so the next start always plays from the beginning."""

    def __init__(self, binary: Optional[str] = None) -> None:
        self.binary = binary or os.getenv("FFPLAY_BIN", "ffplay")

    def play_loop(self, url: str, volume: int) -> subprocess.Popen:
        try:
            return subprocess.Popen(
                [self.binary, "-nodisp", "-loglevel", "quiet", "-loop", "0", "-volume", str(volume), url],
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise PlaybackFailure(f"Could not launch {self.binary}: {e}") from e

    def stop(self, handle: subprocess.Popen) -> None:
        if handle.poll() is not None:
            return
        handle.terminate()
        try:
            handle.wait(timeout=2)
        except subprocess.TimeoutExpired:
            handle.kill()
            handle.wait()


class SimulatedAudioBackend:
    """Logs playback instead of producing sound (SIMULATE_AUDIO=true, headless hosts)."""

    def play_loop(self, url: str, volume: int) -> str:
        logger.info(f"Simulated ringtone loop: {url} at volume {volume}")
        return url

    def stop(self, handle: Any) -> None:
        logger.info(f"Simulated ringtone stopped: {handle}")


def get_audio_backend():
    if os.getenv("SIMULATE_AUDIO", "false").lower() == "true":
        return SimulatedAudioBackend()
    return FfplayBackend()


class RingtonePlayer:
    """Playback handle for a single incoming call.

    The state machine creates one per session when the call starts ringing and
    calls stop() once on the way out of the incoming state.
    """

    def __init__(self, backend: Optional[Any] = None) -> None:
        self.backend = backend or get_audio_backend()
        self.volume = PLAYBACK_VOLUME
        self._handle: Optional[Any] = None

    @property
    def is_playing(self) -> bool:
        return self._handle is not None

    def start(self, url: Optional[str]) -> bool:
        """Start looping playback. Failures are logged and reported as False."""
        if self._handle is not None:
            self.stop()
        if not url:
            logger.info("No ringtone to play (silent call)")
            return False
        try:
            self._handle = self.backend.play_loop(url, self.volume)
        except PlaybackFailure as e:
            logger.warning(f"Ringtone playback failed, continuing silently: {e}")
            self._handle = None
            return False
        logger.info(f"Ringtone started: {url}")
        return True

    def stop(self) -> None:
        handle, self._handle = self._handle, None
        if handle is None:
            return
        try:
            self.backend.stop(handle)
        except OSError as e:
            logger.warning(f"Error while stopping ringtone: {e}")
        logger.info("Ringtone stopped")
