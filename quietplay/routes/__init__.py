"""
QuietPlay Route Blueprints
Modular Flask blueprints for better code organization.
"""

from .health import health_bp
from .playback import playback_bp
from .schedules import schedules_bp
from .settings import settings_bp
from .tracks import tracks_bp

__all__ = [
    "health_bp",
    "playback_bp",
    "schedules_bp",
    "settings_bp",
    "tracks_bp",
]
