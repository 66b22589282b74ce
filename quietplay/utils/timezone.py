#!/usr/bin/env python3
"""Timezone used to evaluate schedule entries.

Schedules follow the host's wall clock unless an IANA name is configured
through ``QUIETPLAY_TIMEZONE`` or the ``timezone`` config key.
"""

from __future__ import annotations

import datetime as _dt
import logging
import os
from functools import lru_cache
from typing import Any, Dict
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from .thread_safety import get_thread_safe_config_manager, load_config_safe

_LOGGER = logging.getLogger("timezone")
HOST_TIMEZONE = "local"


def _extract_timezone(config: Dict[str, Any] | None) -> str | None:
    if not config:
        return None
    tz_value = config.get("timezone")
    if isinstance(tz_value, str):
        tz_value = tz_value.strip()
        if tz_value:
            return tz_value
    return None


def _resolve_timezone_name() -> str:
    env_tz = os.getenv("QUIETPLAY_TIMEZONE", "").strip()
    if env_tz:
        return env_tz
    try:
        config = load_config_safe()
    except RuntimeError as exc:  # pragma: no cover - config may not be initialised yet
        _LOGGER.debug("Could not load config for timezone resolution: %s", exc)
        return HOST_TIMEZONE
    return _extract_timezone(config) or HOST_TIMEZONE


@lru_cache(maxsize=1)
def get_timezone_name() -> str:
    """Configured IANA name, or ``"local"`` when schedules follow the host clock."""
    return _resolve_timezone_name()


@lru_cache(maxsize=8)
def _zoneinfo_cached(name: str) -> ZoneInfo:
    return ZoneInfo(name)


def host_timezone() -> _dt.tzinfo:
    """The host's current UTC offset; re-read on every call so DST switches apply."""
    return _dt.datetime.now().astimezone().tzinfo


def get_local_timezone() -> _dt.tzinfo:
    tz_name = get_timezone_name()
    if tz_name.lower() == HOST_TIMEZONE:
        return host_timezone()
    try:
        return _zoneinfo_cached(tz_name)
    except (ZoneInfoNotFoundError, ValueError):
        _LOGGER.warning("Unknown timezone '%s' – using the host clock", tz_name)
        return host_timezone()


def invalidate_timezone_cache() -> None:
    """Clear cached timezone information (called on config change)."""
    get_timezone_name.cache_clear()


def _on_config_change(_config: Dict[str, Any]) -> None:
    invalidate_timezone_cache()


try:
    get_thread_safe_config_manager().add_change_listener(_on_config_change)
except RuntimeError as exc:  # pragma: no cover - config not initialised
    _LOGGER.debug("Timezone change listener registration failed: %s", exc)
