"""Schedule trigger evaluation and re-arming."""

from __future__ import annotations

import datetime as dt

from quietplay.core.schedule import (ScheduleAction, ScheduleEntry,
                                     ScheduleEvaluator, day_of_week,
                                     format_time_of_day, next_occurrence,
                                     parse_time_of_day)

UTC = dt.timezone.utc
# 2024-01-01 is a Monday, day 1 with Sunday as 0
MONDAY_0900 = dt.datetime(2024, 1, 1, 9, 0, 0, tzinfo=UTC)


def _entry(entry_id=1, time="09:00", days=(1,), action=ScheduleAction.PLAY) -> ScheduleEntry:
    return ScheduleEntry(id=entry_id, time_of_day=time, days_of_week=frozenset(days), action=action)


def test_day_of_week_starts_on_sunday():
    assert day_of_week(dt.datetime(2024, 1, 7)) == 0
    assert day_of_week(MONDAY_0900) == 1
    assert day_of_week(dt.datetime(2024, 1, 6)) == 6


def test_time_of_day_is_zero_padded():
    assert format_time_of_day(dt.datetime(2024, 1, 1, 7, 5)) == "07:05"
    assert parse_time_of_day("07:05") == (7, 5)
    assert parse_time_of_day("25:00") is None
    assert parse_time_of_day("noon") is None


def test_fires_once_per_minute_and_rearms_after_61_seconds():
    evaluator = ScheduleEvaluator([_entry()])

    fired = evaluator.evaluate(MONDAY_0900)
    assert [(f.entry_id, f.action) for f in fired] == [(1, ScheduleAction.PLAY)]
    assert evaluator.get_entry(1).fired_this_minute is True

    for second in range(1, 60):
        assert evaluator.evaluate(MONDAY_0900 + dt.timedelta(seconds=second)) == []

    evaluator.evaluate(MONDAY_0900 + dt.timedelta(seconds=61))
    assert evaluator.get_entry(1).fired_this_minute is False
    assert evaluator.pending_rearms() == []


def test_wrong_day_does_not_fire():
    evaluator = ScheduleEvaluator([_entry(days=(2, 3))])
    assert evaluator.evaluate(MONDAY_0900) == []


def test_entry_without_days_never_fires():
    evaluator = ScheduleEvaluator([_entry(days=())])
    assert evaluator.evaluate(MONDAY_0900) == []
    assert next_occurrence(_entry(days=()), MONDAY_0900) is None


def test_removing_entry_cancels_rearm():
    evaluator = ScheduleEvaluator([_entry()])
    evaluator.evaluate(MONDAY_0900)
    assert len(evaluator.pending_rearms()) == 1

    assert evaluator.remove_entry(1) is True
    assert evaluator.pending_rearms() == []
    assert evaluator.remove_entry(1) is False


def test_reload_keeps_fired_flag_of_surviving_entries():
    evaluator = ScheduleEvaluator([_entry(1), _entry(2, action=ScheduleAction.PAUSE)])
    assert len(evaluator.evaluate(MONDAY_0900)) == 2

    evaluator.replace_entries([_entry(1)])
    assert [h.entry_id for h in evaluator.pending_rearms()] == [1]
    assert evaluator.evaluate(MONDAY_0900 + dt.timedelta(seconds=10)) == []


def test_added_entry_starts_armed():
    evaluator = ScheduleEvaluator()
    evaluator.add_entry(ScheduleEntry(5, "09:00", frozenset({1}), ScheduleAction.PAUSE, fired_this_minute=True))
    assert [f.entry_id for f in evaluator.evaluate(MONDAY_0900)] == [5]


def test_next_occurrence_rolls_over_to_next_matching_day():
    entry = _entry(time="08:00", days=(3,))
    upcoming = next_occurrence(entry, MONDAY_0900)
    assert upcoming == dt.datetime(2024, 1, 3, 8, 0, tzinfo=UTC)


def test_next_occurrence_includes_current_minute():
    assert next_occurrence(_entry(), MONDAY_0900 + dt.timedelta(seconds=30)) == MONDAY_0900


def test_entry_round_trips_through_storage_dict():
    entry = ScheduleEntry.from_dict({"id": 7, "time": "21:30", "days": [5, 0], "action": "pause"})
    assert entry.days_of_week == frozenset({0, 5})
    assert entry.action is ScheduleAction.PAUSE
    assert entry.to_dict() == {"id": 7, "time": "21:30", "days": [0, 5], "action": "pause"}
