"""
▶️ Playback Service - Business Logic for the Playback Engine
===========================================================

Wires the playback engine to persisted settings, schedules and the track
list, and exposes the user commands (play/pause, next, previous, select,
track ended, reset play time) to the routes.
"""

from typing import Any, Dict, List, Mapping

from . import BaseService, ServiceResult
from ..config import load_config
from ..core.engine import get_playback_engine
from ..core.errors import InvariantViolation, TransientIOError
from ..core.playback import PlaybackConfig
from ..core.schedule import ScheduleEntry
from ..utils.thread_safety import get_thread_safe_config_manager
from ..utils.validation import ValidationError, validate_track_index
from .library_service import get_track_library


def schedule_entries_from_config(config: Mapping[str, Any]) -> List[ScheduleEntry]:
    return [ScheduleEntry.from_dict(item) for item in config.get("schedules") or []]


class PlaybackService(BaseService):
    """Service driving the playback engine."""

    def __init__(self):
        super().__init__("playback")
        self._listener_registered = False

    def initialize(self) -> ServiceResult:
        """Load limits, schedules and track count into the engine."""
        try:
            engine = get_playback_engine()
            config = load_config()
            self._apply_config(config)
            try:
                engine.set_track_count(get_track_library().count())
            except TransientIOError as e:
                self.logger.warning(f"Track library unavailable at startup: {e.message}")

            if not self._listener_registered:
                get_thread_safe_config_manager().add_change_listener(self._on_config_changed)
                self._listener_registered = True
            return super().initialize()
        except Exception as e:
            self.logger.error(f"Failed to initialize {self.name} service: {e}")
            return self._error_result(f"Failed to initialize {self.name} service", error_code="INIT_FAILED")

    def _apply_config(self, config: Mapping[str, Any]) -> None:
        engine = get_playback_engine()
        engine.update_config(PlaybackConfig.from_settings(config.get("settings") or {}))
        engine.reload_schedules(schedule_entries_from_config(config))

    def _on_config_changed(self, new_config: Dict[str, Any]) -> None:
        self._apply_config(new_config)
        self.logger.debug("Playback engine refreshed from saved config")

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def get_status(self) -> ServiceResult:
        try:
            return self._success_result(data=get_playback_engine().status())
        except Exception as e:
            return self._handle_error(e, "get_status")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def _command(self, operation: str, message: str) -> ServiceResult:
        engine = get_playback_engine()
        try:
            getattr(engine, operation)()
            return self._success_result(data=engine.status(), message=message)
        except InvariantViolation:
            raise
        except Exception as e:
            return self._handle_error(e, operation)

    def toggle_play_pause(self) -> ServiceResult:
        return self._command("toggle_play_pause", "Playback toggled")

    def next_track(self) -> ServiceResult:
        return self._command("next_track", "Skipped to next track")

    def previous_track(self) -> ServiceResult:
        return self._command("previous_track", "Back to previous track")

    def track_ended(self) -> ServiceResult:
        return self._command("on_track_ended", "Continuing with next track")

    def reset_play_time(self) -> ServiceResult:
        return self._command("reset_play_time", "Play time reset")

    def select_track(self, form_data: Mapping[str, Any]) -> ServiceResult:
        """Jump to a track by playlist index and start playing it."""
        engine = get_playback_engine()
        try:
            with engine.locked():
                index = validate_track_index(form_data.get("index"), engine.track_count)
                engine.select_track(index)
            return self._success_result(data=engine.status(), message=f"Playing track {index + 1}")
        except ValidationError as e:
            return self._validation_error(e)
        except InvariantViolation:
            raise
        except Exception as e:
            return self._handle_error(e, "select_track")

    def health_check(self) -> ServiceResult:
        if not self._initialized:
            return super().health_check()
        engine = get_playback_engine()
        state = engine.state()
        return self._success_result(data={
            "status": "healthy" if engine.is_running() else "idle",
            "service": self.name,
            "phase": state.phase.value,
            "ticker_running": engine.is_running(),
        })
