#!/usr/bin/env python3
"""
Schedule trigger evaluation.

Every tick the evaluator compares the current ``HH:MM`` and day of week
(0=Sunday..6=Saturday) against the configured entries. A matching entry fires
once and is then disarmed until its re-arm handle expires 60 seconds later, so
the once-per-second evaluation cannot fire it twice within the same minute.
"""

from __future__ import annotations

import datetime
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

from ..constants import DAY_NAMES, SCHEDULE_REARM_SECONDS
from ..utils.logger import log_structured

logger = logging.getLogger("schedule")


class ScheduleAction(str, Enum):
    PLAY = "play"
    PAUSE = "pause"


def parse_time_of_day(value: str) -> Optional[Tuple[int, int]]:
    """Return (hour, minute) tuple if ``value`` is a valid HH:MM string."""
    try:
        hour, minute = map(int, value.split(":"))
    except (ValueError, AttributeError):
        return None
    if 0 <= hour <= 23 and 0 <= minute <= 59:
        return hour, minute
    return None


def format_time_of_day(now: datetime.datetime) -> str:
    return f"{now.hour:02d}:{now.minute:02d}"


def day_of_week(now: datetime.datetime) -> int:
    """Day index with Sunday as 0 (``datetime.weekday()`` starts at Monday)."""
    return (now.weekday() + 1) % 7


def day_name(day: int) -> str:
    return DAY_NAMES[day]


@dataclass
class ScheduleEntry:
    id: int
    time_of_day: str
    days_of_week: frozenset
    action: ScheduleAction
    fired_this_minute: bool = False

    def matches(self, time_of_day: str, day: int) -> bool:
        return self.time_of_day == time_of_day and day in self.days_of_week

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "time": self.time_of_day,
            "days": sorted(self.days_of_week),
            "action": self.action.value,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScheduleEntry":
        return cls(
            id=int(data["id"]),
            time_of_day=str(data["time"]),
            days_of_week=frozenset(int(day) for day in data.get("days", ())),
            action=ScheduleAction(data["action"]),
        )


@dataclass
class RearmHandle:
    """Pending re-arm of one entry. Dropped when the entry is removed."""

    entry_id: int
    rearm_at: datetime.datetime

    def due(self, now: datetime.datetime) -> bool:
        return now >= self.rearm_at


@dataclass
class FiredAction:
    entry_id: int
    action: ScheduleAction
    fired_at: datetime.datetime = field(compare=False)


class ScheduleEvaluator:
    """Owns the schedule entries and their fired/re-arm bookkeeping."""

    def __init__(self, entries: Iterable[ScheduleEntry] = (), rearm_seconds: int = SCHEDULE_REARM_SECONDS):
        self._entries: Dict[int, ScheduleEntry] = {}
        self._rearm: Dict[int, RearmHandle] = {}
        self._rearm_delta = datetime.timedelta(seconds=rearm_seconds)
        self.replace_entries(entries)

    def entries(self) -> List[ScheduleEntry]:
        return [replace(entry) for entry in self._entries.values()]

    def get_entry(self, entry_id: int) -> Optional[ScheduleEntry]:
        entry = self._entries.get(entry_id)
        return replace(entry) if entry else None

    def pending_rearms(self) -> List[RearmHandle]:
        return list(self._rearm.values())

    def add_entry(self, entry: ScheduleEntry) -> None:
        self._entries[entry.id] = replace(entry, fired_this_minute=False)
        self._rearm.pop(entry.id, None)

    def remove_entry(self, entry_id: int) -> bool:
        self._rearm.pop(entry_id, None)
        return self._entries.pop(entry_id, None) is not None

    def replace_entries(self, entries: Iterable[ScheduleEntry]) -> None:
        """Swap in a freshly loaded collection.

        Entries that survive the reload keep their fired flag and re-arm
        handle; handles of vanished entries are cancelled.
        """
        fresh: Dict[int, ScheduleEntry] = {}
        for entry in entries:
            existing = self._entries.get(entry.id)
            fired = bool(existing and existing.fired_this_minute and entry.id in self._rearm)
            fresh[entry.id] = replace(entry, fired_this_minute=fired)
        for entry_id in list(self._rearm):
            if entry_id not in fresh or not fresh[entry_id].fired_this_minute:
                del self._rearm[entry_id]
        self._entries = fresh

    def _release_due(self, now: datetime.datetime) -> None:
        for entry_id, handle in list(self._rearm.items()):
            if handle.due(now):
                del self._rearm[entry_id]
                entry = self._entries.get(entry_id)
                if entry is not None:
                    entry.fired_this_minute = False

    def evaluate(self, now: datetime.datetime) -> List[FiredAction]:
        """Fire every armed entry matching ``now``; return the fired actions."""
        self._release_due(now)
        current_time = format_time_of_day(now)
        current_day = day_of_week(now)

        fired: List[FiredAction] = []
        for entry in self._entries.values():
            if entry.fired_this_minute or not entry.matches(current_time, current_day):
                continue
            entry.fired_this_minute = True
            self._rearm[entry.id] = RearmHandle(entry.id, now + self._rearm_delta)
            fired.append(FiredAction(entry.id, entry.action, now))
            log_structured(logger, logging.INFO, "⏰ Schedule fired",
                           schedule_id=entry.id, action=entry.action.value,
                           time_of_day=current_time, day=day_name(current_day))
        return fired


def next_occurrence(entry: ScheduleEntry, reference: datetime.datetime) -> Optional[datetime.datetime]:
    """Return the next datetime at or after ``reference`` at which ``entry`` fires."""
    components = parse_time_of_day(entry.time_of_day)
    if components is None or not entry.days_of_week:
        return None

    hour, minute = components
    for offset in range(8):
        day = reference.date() + datetime.timedelta(days=offset)
        candidate = datetime.datetime(day.year, day.month, day.day, hour, minute, tzinfo=reference.tzinfo)
        if candidate < reference.replace(second=0, microsecond=0):
            continue
        if day_of_week(candidate) in entry.days_of_week:
            return candidate
    return None
