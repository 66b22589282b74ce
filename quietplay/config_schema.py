"""
Pydantic models for QuietPlay configuration validation

Settings, schedule entries and runtime options all live in one JSON config
file. These schemas keep a hand-edited or half-written file from reaching
the playback engine.
"""

from typing import Any, Dict, Literal

from pydantic import BaseModel, Field, field_validator
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .constants import (DEFAULT_FADE_ENABLED,
                        DEFAULT_MAX_PLAY_DURATION_MINUTES,
                        DEFAULT_SILENCE_DURATION_SECONDS,
                        MAX_MAX_PLAY_DURATION_MINUTES,
                        MAX_SILENCE_DURATION_SECONDS,
                        MIN_MAX_PLAY_DURATION_MINUTES)

TIME_PATTERN = r"^([0-1][0-9]|2[0-3]):[0-5][0-9]$"


class PlaybackSettings(BaseModel):
    """Silence/max-play settings tuple edited from the settings view."""

    silence_duration: int = Field(
        default=DEFAULT_SILENCE_DURATION_SECONDS, ge=0, le=MAX_SILENCE_DURATION_SECONDS,
        description="Mandatory silence in seconds",
    )
    fade_enabled: bool = Field(default=DEFAULT_FADE_ENABLED, description="Fade in/out between tracks")
    max_play_duration: int = Field(
        default=DEFAULT_MAX_PLAY_DURATION_MINUTES,
        ge=MIN_MAX_PLAY_DURATION_MINUTES, le=MAX_MAX_PLAY_DURATION_MINUTES,
        description="Play time in minutes before a silence period starts",
    )


class ScheduleEntryConfig(BaseModel):
    """Persisted schedule entry."""

    id: int = Field(ge=1)
    time: str = Field(pattern=TIME_PATTERN, description="Trigger time in zero-padded HH:MM")
    days: list[int] = Field(min_length=1, description="Days of week (0=Sunday, 6=Saturday)")
    action: Literal["play", "pause"]

    @field_validator('days')
    @classmethod
    def validate_days(cls, v: list[int]) -> list[int]:
        for day in v:
            if not isinstance(day, int) or day < 0 or day > 6:
                raise ValueError(f"Invalid day value: {day}. Must be 0-6 (0=Sunday, 6=Saturday)")
        return sorted(set(v))


class QuietPlayConfig(BaseModel):
    """Complete QuietPlay configuration schema.

    Example:
        >>> validated = QuietPlayConfig(**json.load(open("config/development.json")))
        >>> validated.settings.max_play_duration
        60
    """

    settings: PlaybackSettings = Field(default_factory=PlaybackSettings)
    schedules: list[ScheduleEntryConfig] = Field(default_factory=list)
    next_schedule_id: int = Field(default=1, ge=1)

    # Runtime settings
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    timezone: str = Field(default="", description="IANA timezone for schedule evaluation; empty = host clock")
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=3001, ge=1, le=65535)
    library_path: str = Field(default="", description="Track library JSON file; empty = next to config")

    model_config = {
        "extra": "allow",
        "str_strip_whitespace": True,
        "validate_assignment": True,
    }

    @field_validator('timezone')
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        if not v or v.lower() == "local":
            return v
        try:
            ZoneInfo(v)
            return v
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Invalid timezone: {v}. Must be a valid IANA timezone (e.g., 'America/New_York') or empty for the host clock")

    @field_validator('schedules')
    @classmethod
    def validate_unique_ids(cls, v: list[ScheduleEntryConfig]) -> list[ScheduleEntryConfig]:
        seen = set()
        for entry in v:
            if entry.id in seen:
                raise ValueError(f"Duplicate schedule id: {entry.id}")
            seen.add(entry.id)
        return v

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(mode='json')


def validate_config_dict(config_dict: Dict[str, Any]) -> tuple[QuietPlayConfig, list[str]]:
    """Validate a config dictionary against the schema.

    Returns:
        Tuple of (validated_config, warnings_list)

    Raises:
        ValueError: If config is invalid with detailed error messages
    """
    warnings = []
    try:
        validated = QuietPlayConfig(**config_dict)
    except Exception as e:
        raise ValueError(f"Configuration validation failed: {str(e)}")

    highest_id = max((entry.id for entry in validated.schedules), default=0)
    if validated.next_schedule_id <= highest_id:
        warnings.append(
            f"next_schedule_id {validated.next_schedule_id} collides with existing schedules; using {highest_id + 1}"
        )
        validated.next_schedule_id = highest_id + 1
    return validated, warnings


def migrate_legacy_config(config_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Move flat settings keys into the ``settings`` block.

    Early config files stored ``silence_duration``, ``fade_enabled`` and
    ``max_play_duration`` at the top level, the way the settings row did.
    """
    migrated = dict(config_dict)
    settings = dict(migrated.get("settings") or {})
    for key in ("silence_duration", "fade_enabled", "max_play_duration"):
        if key in migrated:
            settings.setdefault(key, migrated.pop(key))
    if settings:
        migrated["settings"] = settings
    return migrated
