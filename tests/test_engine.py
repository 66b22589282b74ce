"""Tick pipeline ordering and tick source lifecycle."""

from __future__ import annotations

import datetime as dt
import threading
import time

from quietplay.core.clock import TickSource
from quietplay.core.engine import (PlaybackEngine, format_clock,
                                   format_duration_minutes, format_silence)
from quietplay.core.playback import (PlaybackConfig, PlaybackController,
                                     PlaybackPhase, PlaybackState)
from quietplay.core.schedule import (ScheduleAction, ScheduleEntry,
                                     ScheduleEvaluator)

UTC = dt.timezone.utc
MONDAY_0900 = dt.datetime(2024, 1, 1, 9, 0, 0, tzinfo=UTC)


def _fixed_clock():
    return MONDAY_0900


def _engine(state: PlaybackState, entries=(), **config) -> PlaybackEngine:
    return PlaybackEngine(
        controller=PlaybackController(track_count=3, state=state),
        evaluator=ScheduleEvaluator(entries),
        config=PlaybackConfig(**config),
        clock=_fixed_clock,
    )


def test_schedule_pause_is_last_write_in_tick():
    # The accumulator would resume playback this tick; the schedule wins
    entry = ScheduleEntry(1, "09:00", frozenset({1}), ScheduleAction.PAUSE)
    engine = _engine(PlaybackState(in_silence=True, silence_remaining_seconds=1), [entry])

    fired = engine.tick(MONDAY_0900)

    assert [f.entry_id for f in fired] == [1]
    assert engine.state().phase is PlaybackPhase.PAUSED


def test_schedule_play_overrides_silence_entered_in_same_tick():
    entry = ScheduleEntry(1, "09:00", frozenset({1}), ScheduleAction.PLAY)
    engine = _engine(
        PlaybackState(is_playing=True, total_play_seconds=59),
        [entry],
        max_play_seconds=60,
        silence_seconds=30,
    )

    engine.tick(MONDAY_0900)

    state = engine.state()
    assert state.phase is PlaybackPhase.PLAYING
    assert state.total_play_seconds == 0


def test_schedule_fires_once_across_a_minute_of_ticks():
    entry = ScheduleEntry(1, "09:00", frozenset({1}), ScheduleAction.PLAY)
    engine = _engine(PlaybackState(), [entry])
    fired = []
    for second in range(60):
        fired.extend(engine.tick(MONDAY_0900 + dt.timedelta(seconds=second)))
    assert len(fired) == 1


def test_config_update_takes_effect_on_next_tick():
    engine = _engine(PlaybackState(is_playing=True, total_play_seconds=10), max_play_seconds=3600)
    engine.update_config(PlaybackConfig(max_play_seconds=5, silence_seconds=7))
    engine.tick(MONDAY_0900)
    assert engine.state().silence_remaining_seconds == 7


def test_reloading_schedules_drops_removed_entries():
    entry = ScheduleEntry(1, "09:00", frozenset({1}), ScheduleAction.PLAY)
    engine = _engine(PlaybackState(), [entry])
    engine.tick(MONDAY_0900)
    assert len(engine.pending_rearms()) == 1

    engine.reload_schedules([])
    assert engine.pending_rearms() == []
    assert engine.schedules() == []


def test_status_reports_derived_labels():
    entry = ScheduleEntry(4, "10:00", frozenset({1}), ScheduleAction.PAUSE)
    engine = _engine(PlaybackState(is_playing=True, total_play_seconds=90), [entry], max_play_seconds=3600)
    status = engine.status()
    assert status["remaining_play_seconds"] == 3510
    assert status["remaining_play_label"] == "58:30"
    assert status["max_play_label"] == "1h"
    assert status["state"]["phase"] == "playing"
    assert status["next_schedule"]["id"] == 4
    assert status["ticker_running"] is False


def test_formatters():
    assert format_clock(65) == "1:05"
    assert format_duration_minutes(45) == "45 min"
    assert format_duration_minutes(90) == "1h 30m"
    assert format_silence(30) == "30s"
    assert format_silence(120) == "2m"
    assert format_silence(125) == "2m 5s"


# -------- tick source --------

def test_tick_source_emits_until_stopped():
    ticks = []
    ticked = threading.Event()

    def on_tick(now):
        ticks.append(now)
        if len(ticks) >= 3:
            ticked.set()

    source = TickSource(on_tick, clock=_fixed_clock, interval=0.01)
    source.start()
    source.start()  # idempotent
    assert ticked.wait(timeout=2.0)
    source.stop()

    assert not source.is_running()
    count = len(ticks)
    time.sleep(0.05)
    assert len(ticks) == count
    assert all(now == MONDAY_0900 for now in ticks)


def test_tick_source_survives_failing_callback():
    calls = []
    ticked = threading.Event()

    def flaky(now):
        calls.append(now)
        if len(calls) == 1:
            raise ValueError("first tick fails")
        ticked.set()

    source = TickSource(flaky, clock=_fixed_clock, interval=0.01)
    source.start()
    assert ticked.wait(timeout=2.0)
    source.stop()
    assert len(calls) >= 2


def test_restart_after_slow_stop_keeps_a_single_ticker():
    restarted = threading.Event()
    in_first_tick = threading.Event()
    threads_after_restart = []

    def slow_tick(_now):
        if restarted.is_set():
            threads_after_restart.append(threading.get_ident())
        in_first_tick.set()
        time.sleep(0.3)

    source = TickSource(slow_tick, clock=_fixed_clock, interval=0.01)
    source.start()
    assert in_first_tick.wait(timeout=2.0)
    source.stop(timeout=0.01)  # returns while the old thread is still inside its tick

    restarted.set()
    source.start()
    time.sleep(1.0)
    source.stop()

    assert len(threads_after_restart) >= 2
    assert len(set(threads_after_restart)) == 1


def test_engine_stop_tears_down_ticking():
    engine = PlaybackEngine(
        controller=PlaybackController(track_count=1, state=PlaybackState(is_playing=True)),
        config=PlaybackConfig(max_play_seconds=10_000),
        clock=_fixed_clock,
        interval=0.01,
    )
    engine.start()
    deadline = time.monotonic() + 2.0
    while engine.state().total_play_seconds < 2 and time.monotonic() < deadline:
        time.sleep(0.01)
    engine.stop()
    engine.stop()

    frozen = engine.state().total_play_seconds
    assert frozen >= 2
    time.sleep(0.05)
    assert engine.state().total_play_seconds == frozen
    assert not engine.is_running()
