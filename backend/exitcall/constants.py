CALLERS = ["Mom", "Dad", "Yamini"]
DELAY_CHOICES = [2, 5, 10]
RINGTONES = ["Classic iPhone", "Urgent", "Vibration Only"]

DEFAULT_CALLER = "Mom"
DEFAULT_DELAY_SECONDS = 5
DEFAULT_RINGTONE = "Classic iPhone"

# Settings is a singleton row; every upsert targets this id.
SETTINGS_ID = "00000000-0000-0000-0000-000000000001"

STATUS_INCOMING = "incoming"
STATUS_ACTIVE = "active"
STATUS_ENDED = "ended"
SESSION_STATUSES = [STATUS_INCOMING, STATUS_ACTIVE, STATUS_ENDED]

SCREEN_HOME = "Home"
SCREEN_INCOMING_CALL = "IncomingCall"
SCREEN_IN_CALL = "InCall"

DEFAULT_RINGTONE_BASE_URL = "https://www.soundjay.com/phone/sounds/"

# Built-in ringtone -> sound file under RINGTONE_BASE_URL. None means silent.
BUILTIN_RINGTONE_FILES = {
    "Classic iPhone": "telephone-ring-01a.mp3",
    "Urgent": "telephone-ring-03a.mp3",
    "Vibration Only": None,
}

PLAYBACK_VOLUME = 50
