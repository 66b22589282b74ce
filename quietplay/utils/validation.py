#!/usr/bin/env python3
"""
🛡️ Input Validation Module for QuietPlay
Provides input validation for all user commands including:
- Schedule times (HH:MM) and day selections
- Play/pause schedule actions
- Silence and max-play durations
- Track metadata edits and reorder requests
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Union

from ..constants import (MAX_MAX_PLAY_DURATION_MINUTES,
                         MAX_SILENCE_DURATION_SECONDS,
                         MIN_MAX_PLAY_DURATION_MINUTES)

DURATION_PATTERN = re.compile(r"^\d{1,3}:[0-5]\d$")


@dataclass
class ValidationResult:
    """Result of input validation with value and error details."""
    is_valid: bool
    value: Any = None
    error: str = ""
    field_name: str = ""

class InputValidator:
    """Centralized input validation for all QuietPlay user inputs."""

    MAX_TEXT_LENGTH = 200

    TIME_PATTERN = re.compile(r'^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$')
    ACTIONS = ("play", "pause")

    @classmethod
    def validate_time(cls, value: Union[str, None], field_name: str = "time") -> ValidationResult:
        """Validate time format (HH:MM) and normalise to zero-padded form.

        Args:
            value: Time string to validate
            field_name: Name of the field for error messages

        Returns:
            ValidationResult: Validation result with cleaned value or error
        """
        if not value:
            return ValidationResult(False, None, f"{field_name} is required", field_name)

        if not isinstance(value, str):
            return ValidationResult(False, None, f"{field_name} must be a string", field_name)

        match = cls.TIME_PATTERN.match(value.strip())
        if not match:
            return ValidationResult(
                False, None,
                f"{field_name} must be in HH:MM format (24-hour)",
                field_name
            )
        hour, minute = int(match.group(1)), int(match.group(2))
        return ValidationResult(True, f"{hour:02d}:{minute:02d}", "", field_name)

    @classmethod
    def validate_days(cls, value: Any, field_name: str = "days") -> ValidationResult:
        """Validate a day-of-week selection (0=Sunday..6=Saturday).

        Accepts a list of ints/strings or a comma separated string. An empty
        selection is rejected: such an entry could never fire.
        """
        if value is None or value == "" or value == []:
            return ValidationResult(False, None, f"select at least one day", field_name)

        if isinstance(value, str):
            raw_items: List[Any] = [item for item in value.split(",") if item.strip()]
        elif isinstance(value, (list, tuple, set, frozenset)):
            raw_items = list(value)
        else:
            return ValidationResult(False, None, f"{field_name} must be a list of days", field_name)

        days = set()
        for item in raw_items:
            if isinstance(item, bool):
                return ValidationResult(False, None, f"{field_name} contains an invalid day", field_name)
            try:
                day = int(str(item).strip())
            except (TypeError, ValueError):
                return ValidationResult(False, None, f"{field_name} contains an invalid day: {item!r}", field_name)
            if day < 0 or day > 6:
                return ValidationResult(False, None, f"{field_name} values must be between 0 and 6", field_name)
            days.add(day)

        if not days:
            return ValidationResult(False, None, f"select at least one day", field_name)
        return ValidationResult(True, sorted(days), "", field_name)

    @classmethod
    def validate_action(cls, value: Union[str, None], field_name: str = "action") -> ValidationResult:
        if not isinstance(value, str) or value.strip().lower() not in cls.ACTIONS:
            return ValidationResult(False, None, f"{field_name} must be 'play' or 'pause'", field_name)
        return ValidationResult(True, value.strip().lower(), "", field_name)

    @classmethod
    def validate_int_range(cls, value: Any, minimum: int, maximum: int, field_name: str) -> ValidationResult:
        if value is None or value == "":
            return ValidationResult(False, None, f"{field_name} is required", field_name)
        if isinstance(value, bool):
            return ValidationResult(False, None, f"{field_name} must be a number", field_name)
        try:
            number = int(value)
        except (TypeError, ValueError):
            return ValidationResult(
                False, None,
                f"{field_name} must be a valid number between {minimum} and {maximum}",
                field_name
            )
        if number < minimum or number > maximum:
            return ValidationResult(False, None, f"{field_name} must be between {minimum} and {maximum}", field_name)
        return ValidationResult(True, number, "", field_name)

    @classmethod
    def validate_text(cls, value: Any, field_name: str, required: bool = True) -> ValidationResult:
        if value is None or (isinstance(value, str) and not value.strip()):
            if required:
                return ValidationResult(False, None, f"{field_name} is required", field_name)
            return ValidationResult(True, "", "", field_name)
        if not isinstance(value, str):
            return ValidationResult(False, None, f"{field_name} must be a string", field_name)
        value = value.strip()
        if len(value) > cls.MAX_TEXT_LENGTH:
            return ValidationResult(
                False, None,
                f"{field_name} is too long (max {cls.MAX_TEXT_LENGTH} characters)",
                field_name
            )
        if any(ord(ch) < 0x20 for ch in value):
            return ValidationResult(False, None, f"{field_name} contains invalid characters", field_name)
        return ValidationResult(True, value, "", field_name)

    @classmethod
    def validate_boolean(cls, value: Union[str, bool, int, None], field_name: str = "enabled") -> ValidationResult:
        if value is None:
            return ValidationResult(True, False, "", field_name)
        if isinstance(value, bool):
            return ValidationResult(True, value, "", field_name)
        if isinstance(value, str):
            lower_value = value.lower().strip()
            if lower_value in ('true', '1', 'on', 'yes', 'enabled'):
                return ValidationResult(True, True, "", field_name)
            if lower_value in ('false', '0', 'off', 'no', 'disabled', ''):
                return ValidationResult(True, False, "", field_name)
            return ValidationResult(False, None, f"{field_name} must be a boolean", field_name)
        return ValidationResult(True, bool(value), "", field_name)

class ValidationError(Exception):
    """Custom exception for validation errors."""

    def __init__(self, field_name: str, message: str):
        self.field_name = field_name
        self.message = message
        super().__init__(f"{field_name}: {message}")


def _require(result: ValidationResult) -> Any:
    if not result.is_valid:
        raise ValidationError(result.field_name, result.error)
    return result.value


def _get_list(form_data: Mapping[str, Any], key: str) -> Any:
    """Read a possibly repeated form field (``days=1&days=3``) or JSON list."""
    getlist = getattr(form_data, "getlist", None)
    if callable(getlist):
        values = getlist(key)
        if len(values) > 1:
            return values
    return form_data.get(key)


def validate_schedule_form(form_data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate a new schedule entry.

    Raises:
        ValidationError: If any validation fails
    """
    return {
        "time": _require(InputValidator.validate_time(form_data.get("time"), "time")),
        "days": _require(InputValidator.validate_days(_get_list(form_data, "days"), "days")),
        "action": _require(InputValidator.validate_action(form_data.get("action", "play"), "action")),
    }


def validate_settings_form(form_data: Mapping[str, Any]) -> Dict[str, Any]:
    """Validate the complete settings tuple.

    Raises:
        ValidationError: If any validation fails
    """
    validated = {
        "silence_duration": _require(InputValidator.validate_int_range(
            form_data.get("silence_duration"), 0, MAX_SILENCE_DURATION_SECONDS, "silence_duration")),
        "max_play_duration": _require(InputValidator.validate_int_range(
            form_data.get("max_play_duration"), MIN_MAX_PLAY_DURATION_MINUTES,
            MAX_MAX_PLAY_DURATION_MINUTES, "max_play_duration")),
        "fade_enabled": _require(InputValidator.validate_boolean(form_data.get("fade_enabled"), "fade_enabled")),
    }
    return validated


def validate_track_edit(form_data: Mapping[str, Any]) -> Dict[str, str]:
    """Validate a title/artist edit. An empty artist becomes "Unknown Artist"."""
    title = _require(InputValidator.validate_text(form_data.get("title"), "title"))
    artist = _require(InputValidator.validate_text(form_data.get("artist"), "artist", required=False))
    return {"title": title, "artist": artist or "Unknown Artist"}


def validate_track_create(form_data: Mapping[str, Any]) -> Dict[str, str]:
    """Validate metadata for a track whose audio file is already on disk.

    Raises:
        ValidationError: If any validation fails
    """
    fields = validate_track_edit(form_data)
    filename = _require(InputValidator.validate_text(form_data.get("filename"), "filename", required=False))
    if "/" in filename or "\\" in filename or filename in (".", ".."):
        raise ValidationError("filename", "filename must not contain a path")
    duration = _require(InputValidator.validate_text(form_data.get("duration_label"), "duration_label",
                                                     required=False)) or "0:00"
    if not DURATION_PATTERN.match(duration):
        raise ValidationError("duration_label", "duration_label must look like M:SS")
    return {**fields, "filename": filename, "duration_label": duration}


def validate_track_order(payload: Mapping[str, Any]) -> List[int]:
    """Validate a reorder request: ``{"tracks": [{"id": 3}, ...]}`` or ``{"ids": [3, ...]}``."""
    raw = payload.get("ids")
    if raw is None:
        tracks = payload.get("tracks")
        if not isinstance(tracks, list):
            raise ValidationError("tracks", "tracks must be a list")
        raw = [item.get("id") if isinstance(item, dict) else item for item in tracks]
    if not isinstance(raw, list):
        raise ValidationError("ids", "ids must be a list")

    ids: List[int] = []
    for item in raw:
        if isinstance(item, bool):
            raise ValidationError("tracks", "track ids must be integers")
        try:
            ids.append(int(item))
        except (TypeError, ValueError):
            raise ValidationError("tracks", f"invalid track id: {item!r}")
    if len(set(ids)) != len(ids):
        raise ValidationError("tracks", "track ids must be unique")
    return ids


def validate_track_index(value: Any, track_count: int) -> int:
    """Validate a playlist index coming from the UI before it reaches the core."""
    if track_count <= 0:
        raise ValidationError("index", "playlist is empty")
    return _require(InputValidator.validate_int_range(value, 0, track_count - 1, "index"))
