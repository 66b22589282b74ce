"""Ordered per-tick playback pipeline.

One tick runs, under a single lock:
  1. the play-time accumulator / silence countdown
  2. the schedule evaluator
  3. the fired schedule actions (last write wins over step 1)

User commands take the same lock, so no command ever interleaves with a tick.
"""
from __future__ import annotations

import datetime as _dt
import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from .clock import Clock, TickSource
from .playback import PlaybackConfig, PlaybackController, PlaybackState
from .schedule import (FiredAction, RearmHandle, ScheduleEntry,
                       ScheduleEvaluator, next_occurrence)

_logger = logging.getLogger("playback_engine")


def format_clock(seconds: int) -> str:
    """``M:SS`` label used for remaining play time."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60}:{seconds % 60:02d}"


def format_duration_minutes(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    rest = minutes % 60
    return f"{minutes // 60}h" + (f" {rest}m" if rest else "")


def format_silence(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    rest = seconds % 60
    return f"{seconds // 60}m" + (f" {rest}s" if rest else "")


class PlaybackEngine:
    def __init__(
        self,
        controller: Optional[PlaybackController] = None,
        evaluator: Optional[ScheduleEvaluator] = None,
        config: Optional[PlaybackConfig] = None,
        clock: Optional[Clock] = None,
        interval: Optional[float] = None,
    ):
        self._controller = controller or PlaybackController()
        self._evaluator = evaluator or ScheduleEvaluator()
        self._config = config or PlaybackConfig()
        self._lock = threading.RLock()
        ticker_kwargs: Dict[str, Any] = {"clock": clock}
        if interval is not None:
            ticker_kwargs["interval"] = interval
        self._ticker = TickSource(self.tick, **ticker_kwargs)
        self._clock = self._ticker.clock
        self._last_tick: Optional[_dt.datetime] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def start(self) -> None:
        self._ticker.start()

    def stop(self) -> None:
        """Tear down the tick source; nothing mutates the state afterwards."""
        self._ticker.stop()

    def is_running(self) -> bool:
        return self._ticker.is_running()

    # ------------------------------------------------------------------
    # Tick pipeline
    # ------------------------------------------------------------------
    def tick(self, now: _dt.datetime) -> List[FiredAction]:
        with self._lock:
            config = self._config
            self._controller.tick(config)
            fired = self._evaluator.evaluate(now)
            for action in fired:
                self._controller.apply_schedule_action(action.action)
            self._last_tick = now
        return fired

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def toggle_play_pause(self) -> PlaybackState:
        with self._lock:
            self._controller.toggle_play_pause()
            return self._controller.snapshot()

    def next_track(self) -> PlaybackState:
        with self._lock:
            self._controller.next_track()
            return self._controller.snapshot()

    def previous_track(self) -> PlaybackState:
        with self._lock:
            self._controller.previous_track()
            return self._controller.snapshot()

    def select_track(self, index: int) -> PlaybackState:
        with self._lock:
            self._controller.select_track(index)
            return self._controller.snapshot()

    def on_track_ended(self) -> PlaybackState:
        with self._lock:
            self._controller.on_track_ended()
            return self._controller.snapshot()

    def reset_play_time(self) -> PlaybackState:
        with self._lock:
            self._controller.reset_play_time()
            return self._controller.snapshot()

    # ------------------------------------------------------------------
    # Collaborator updates
    # ------------------------------------------------------------------
    def update_config(self, config: PlaybackConfig) -> None:
        with self._lock:
            if config != self._config:
                _logger.info(
                    "⚙️ Playback limits updated: max %ss, silence %ss, fade %s",
                    config.max_play_seconds,
                    config.silence_seconds,
                    config.fade_enabled,
                )
            self._config = config

    def reload_schedules(self, entries: Iterable[ScheduleEntry]) -> None:
        with self._lock:
            self._evaluator.replace_entries(entries)

    def set_track_count(self, count: int) -> None:
        with self._lock:
            self._controller.set_track_count(count)

    # ------------------------------------------------------------------
    # Read side
    # ------------------------------------------------------------------
    def locked(self) -> threading.RLock:
        """The engine lock, for callers that must read and command atomically."""
        return self._lock

    @property
    def config(self) -> PlaybackConfig:
        with self._lock:
            return self._config

    @property
    def track_count(self) -> int:
        with self._lock:
            return self._controller.track_count

    def state(self) -> PlaybackState:
        with self._lock:
            return self._controller.snapshot()

    def schedules(self) -> List[ScheduleEntry]:
        with self._lock:
            return self._evaluator.entries()

    def pending_rearms(self) -> List[RearmHandle]:
        with self._lock:
            return self._evaluator.pending_rearms()

    def now(self) -> _dt.datetime:
        """Current wall-clock time as seen by the tick source."""
        return self._clock()

    def status(self) -> Dict[str, Any]:
        """Everything the dashboard shows: state, limits and derived labels."""
        with self._lock:
            state = self._controller.snapshot()
            config = self._config
            entries = self._evaluator.entries()
            track_count = self._controller.track_count
            last_tick = self._last_tick

        remaining = max(0, config.max_play_seconds - state.total_play_seconds)
        progress = min(100.0, (state.total_play_seconds / config.max_play_seconds) * 100)
        now = self._clock()
        upcoming = []
        for entry in entries:
            when = next_occurrence(entry, now)
            if when is not None:
                upcoming.append({"id": entry.id, "action": entry.action.value, "at": when.isoformat()})
        upcoming.sort(key=lambda item: item["at"])

        return {
            "state": state.to_dict(),
            "config": config.to_dict(),
            "track_count": track_count,
            "remaining_play_seconds": remaining,
            "remaining_play_label": format_clock(remaining),
            "max_play_label": format_duration_minutes(config.max_play_seconds // 60),
            "silence_label": format_silence(config.silence_seconds),
            "silence_remaining_label": format_silence(state.silence_remaining_seconds),
            "progress_percent": round(progress, 2),
            "next_schedule": upcoming[0] if upcoming else None,
            "last_tick": last_tick.isoformat() if last_tick else None,
            "ticker_running": self.is_running(),
        }


# Singleton pattern
_engine_instance: Optional[PlaybackEngine] = None
_engine_lock = threading.Lock()


def get_playback_engine() -> PlaybackEngine:
    global _engine_instance
    with _engine_lock:
        if _engine_instance is None:
            _engine_instance = PlaybackEngine()
        return _engine_instance


def start_playback_engine() -> None:
    get_playback_engine().start()


def stop_playback_engine() -> None:
    global _engine_instance
    with _engine_lock:
        engine = _engine_instance
        _engine_instance = None
    if engine is not None:
        engine.stop()
