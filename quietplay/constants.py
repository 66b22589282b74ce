"""Central constants for QuietPlay.

Only put small, stable primitives here – avoid runtime/config dependent values.
"""

# Tick interval of the playback pipeline (seconds)
TICK_INTERVAL_SECONDS: float = 1.0

# A fired schedule entry is re-armed after this many seconds
SCHEDULE_REARM_SECONDS: int = 60

# Settings defaults, stored the way the settings table always stored them:
# silence in seconds, max play duration in minutes
DEFAULT_SILENCE_DURATION_SECONDS: int = 2
DEFAULT_MAX_PLAY_DURATION_MINUTES: int = 60
DEFAULT_FADE_ENABLED: bool = True

# Slider bounds exposed by the settings dialog
MAX_SILENCE_DURATION_SECONDS: int = 1800
MIN_MAX_PLAY_DURATION_MINUTES: int = 1
MAX_MAX_PLAY_DURATION_MINUTES: int = 480

DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
