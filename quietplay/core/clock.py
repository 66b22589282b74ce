"""1 Hz clock tick source driving the playback pipeline.

- Emits the current wall-clock time once per interval from a daemon thread
- No drift correction; casual accuracy is enough for play/silence counting
- ``stop()`` joins the thread so no callback runs after the owner shut down
"""
from __future__ import annotations

import datetime as _dt
import logging
import threading
from typing import Callable, Optional

from ..constants import TICK_INTERVAL_SECONDS

_logger = logging.getLogger("clock")

Clock = Callable[[], _dt.datetime]
TickCallback = Callable[[_dt.datetime], None]


def _default_clock() -> _dt.datetime:
    from ..utils.timezone import get_local_timezone
    return _dt.datetime.now(tz=get_local_timezone())


class TickSource:
    def __init__(
        self,
        callback: TickCallback,
        clock: Optional[Clock] = None,
        interval: float = TICK_INTERVAL_SECONDS,
        name: str = "PlaybackTicker",
    ):
        self._callback = callback
        self._clock = clock or _default_clock
        self._interval = interval
        self._name = name
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._lock = threading.Lock()
        self._tick_count = 0

    @property
    def clock(self) -> Clock:
        return self._clock

    @property
    def tick_count(self) -> int:
        return self._tick_count

    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def start(self) -> None:
        with self._lock:
            if self.is_running():
                return
            # One event per thread; a stopped thread's event stays set
            self._stop_event = threading.Event()
            self._thread = threading.Thread(
                target=self._run_loop, args=(self._stop_event,), name=self._name, daemon=True
            )
            self._thread.start()
            _logger.info("⏱️ %s started (interval %.1fs)", self._name, self._interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            thread = self._thread
            self._stop_event.set()
            self._thread = None
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=timeout if timeout is not None else self._interval * 2 + 1)
            if thread.is_alive():
                _logger.warning("⚠️ %s still finishing its last tick", self._name)
            _logger.info("🛑 %s stopped after %s ticks", self._name, self._tick_count)

    def _run_loop(self, stop_event: threading.Event) -> None:
        while not stop_event.wait(timeout=self._interval):
            now = self._clock()
            self._tick_count += 1
            try:
                self._callback(now)
            except Exception:
                _logger.exception("Tick callback failed at %s", now.isoformat())
