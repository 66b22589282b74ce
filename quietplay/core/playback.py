#!/usr/bin/env python3
"""
🎵 Playback state machine for QuietPlay

Tracks how long music has been playing since the last silence period and
forces a mandatory silence once the configured ceiling is reached:

    PLAYING --(total + 1 >= max_play_seconds)--> SILENCE
    SILENCE --(remaining <= 1)-----------------> PLAYING
    PAUSED  is only left through a user command or a schedule action

``PlaybackController`` is the facade the tick pipeline and the HTTP layer use.
It is not thread-safe on its own; ``core.engine`` serialises access.
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, replace
from enum import Enum
from typing import Any, Dict, Mapping, Optional

from ..constants import (DEFAULT_FADE_ENABLED,
                         DEFAULT_MAX_PLAY_DURATION_MINUTES,
                         DEFAULT_SILENCE_DURATION_SECONDS)
from .errors import InvariantViolation
from .schedule import ScheduleAction

logger = logging.getLogger("playback")


class PlaybackPhase(str, Enum):
    PLAYING = "playing"
    PAUSED = "paused"
    SILENCE = "silence"


@dataclass
class PlaybackState:
    """Observable playback state owned by ``PlaybackController``."""

    is_playing: bool = False
    current_track_index: int = 0
    total_play_seconds: int = 0
    in_silence: bool = False
    silence_remaining_seconds: int = 0

    @property
    def phase(self) -> PlaybackPhase:
        if self.in_silence:
            return PlaybackPhase.SILENCE
        if self.is_playing:
            return PlaybackPhase.PLAYING
        return PlaybackPhase.PAUSED

    def check_invariants(self) -> None:
        if self.is_playing and self.in_silence:
            raise InvariantViolation("is_playing and in_silence are both set")
        if self.total_play_seconds < 0:
            raise InvariantViolation(f"negative total_play_seconds: {self.total_play_seconds}")
        if self.silence_remaining_seconds < 0:
            raise InvariantViolation(f"negative silence_remaining_seconds: {self.silence_remaining_seconds}")
        if self.current_track_index < 0:
            raise InvariantViolation(f"negative track index: {self.current_track_index}")

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["phase"] = self.phase.value
        return data


@dataclass(frozen=True)
class PlaybackConfig:
    """Limits applied by the accumulator. Replaced wholesale on settings update."""

    max_play_seconds: int = DEFAULT_MAX_PLAY_DURATION_MINUTES * 60
    silence_seconds: int = DEFAULT_SILENCE_DURATION_SECONDS
    fade_enabled: bool = DEFAULT_FADE_ENABLED

    def __post_init__(self):
        if self.max_play_seconds <= 0:
            raise InvariantViolation(f"max_play_seconds must be positive, got {self.max_play_seconds}")
        if self.silence_seconds < 0:
            raise InvariantViolation(f"silence_seconds must not be negative, got {self.silence_seconds}")

    @classmethod
    def from_settings(cls, settings: Mapping[str, Any]) -> "PlaybackConfig":
        """Build from the persisted settings tuple.

        ``max_play_duration`` is stored in minutes and ``silence_duration`` in
        seconds.
        """
        max_minutes = int(settings.get("max_play_duration", DEFAULT_MAX_PLAY_DURATION_MINUTES))
        silence = int(settings.get("silence_duration", DEFAULT_SILENCE_DURATION_SECONDS))
        return cls(
            max_play_seconds=max_minutes * 60,
            silence_seconds=silence,
            fade_enabled=bool(settings.get("fade_enabled", DEFAULT_FADE_ENABLED)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def advance(state: PlaybackState, config: PlaybackConfig) -> PlaybackState:
    """Return the state one tick later.

    The silence duration is sampled only when a countdown starts, so changing
    it mid-countdown does not affect the running period. ``max_play_seconds``
    is read on every tick.
    """
    if state.in_silence:
        if state.silence_remaining_seconds > 1:
            return replace(state, silence_remaining_seconds=state.silence_remaining_seconds - 1)
        return replace(
            state,
            in_silence=False,
            is_playing=True,
            total_play_seconds=0,
            silence_remaining_seconds=0,
        )

    if not state.is_playing:
        return state

    if state.total_play_seconds + 1 >= config.max_play_seconds:
        return replace(
            state,
            is_playing=False,
            in_silence=True,
            silence_remaining_seconds=config.silence_seconds,
            total_play_seconds=0,
        )
    return replace(state, total_play_seconds=state.total_play_seconds + 1)


class PlaybackController:
    """Facade over the playback state: user commands plus the per-tick step."""

    def __init__(self, track_count: int = 0, state: Optional[PlaybackState] = None):
        self._state = state or PlaybackState()
        self._track_count = max(0, int(track_count))
        self._state.check_invariants()

    @property
    def state(self) -> PlaybackState:
        return self._state

    @property
    def track_count(self) -> int:
        return self._track_count

    def snapshot(self) -> PlaybackState:
        return replace(self._state)

    def _commit(self, new_state: PlaybackState) -> None:
        new_state.check_invariants()
        previous = self._state
        self._state = new_state
        if previous.phase != new_state.phase:
            logger.info(
                "🎚️ Playback %s -> %s (track %s)",
                previous.phase.value,
                new_state.phase.value,
                new_state.current_track_index,
            )

    # ------------------------------------------------------------------
    # Tick
    # ------------------------------------------------------------------
    def tick(self, config: PlaybackConfig) -> PlaybackState:
        before = self._state
        after = advance(before, config)
        if after is not before:
            if after.in_silence and not before.in_silence:
                logger.info("🔇 Max play time reached – silence for %ss", after.silence_remaining_seconds)
            elif before.in_silence and not after.in_silence:
                logger.info("🔊 Silence period over – resuming playback")
            self._commit(after)
        return self._state

    # ------------------------------------------------------------------
    # User commands
    # ------------------------------------------------------------------
    def toggle_play_pause(self) -> PlaybackState:
        if self._state.in_silence:
            logger.debug("Play/pause ignored during silence period")
            return self._state
        self._commit(replace(self._state, is_playing=not self._state.is_playing))
        return self._state

    def next_track(self) -> PlaybackState:
        if self._state.in_silence or self._track_count == 0:
            return self._state
        index = self._state.current_track_index
        next_index = index + 1 if index < self._track_count - 1 else 0
        self._commit(replace(self._state, current_track_index=next_index))
        return self._state

    def previous_track(self) -> PlaybackState:
        if self._state.in_silence or self._track_count == 0:
            return self._state
        index = self._state.current_track_index
        prev_index = index - 1 if index > 0 else self._track_count - 1
        self._commit(replace(self._state, current_track_index=prev_index))
        return self._state

    def select_track(self, index: int) -> PlaybackState:
        if self._state.in_silence:
            logger.debug("Track selection ignored during silence period")
            return self._state
        if not 0 <= index < self._track_count:
            raise InvariantViolation(f"track index {index} outside [0, {self._track_count})")
        self._commit(replace(self._state, current_track_index=index, is_playing=True))
        return self._state

    def on_track_ended(self) -> PlaybackState:
        """Natural end of the current file continues with the next track."""
        return self.next_track()

    def reset_play_time(self) -> PlaybackState:
        self._commit(replace(self._state, total_play_seconds=0))
        return self._state

    # ------------------------------------------------------------------
    # Schedule actions and track sequence updates
    # ------------------------------------------------------------------
    def apply_schedule_action(self, action: ScheduleAction) -> PlaybackState:
        """Apply a fired schedule action. Overrides any running silence period."""
        if action is ScheduleAction.PLAY:
            new_state = replace(
                self._state,
                is_playing=True,
                in_silence=False,
                silence_remaining_seconds=0,
                total_play_seconds=0,
            )
        else:
            new_state = replace(
                self._state,
                is_playing=False,
                in_silence=False,
                silence_remaining_seconds=0,
            )
        self._commit(new_state)
        return self._state

    def set_track_count(self, count: int) -> None:
        self._track_count = max(0, int(count))
        index = self._state.current_track_index
        if self._track_count == 0:
            index = 0
        elif index >= self._track_count:
            index = self._track_count - 1
        if index != self._state.current_track_index:
            self._commit(replace(self._state, current_track_index=index))
