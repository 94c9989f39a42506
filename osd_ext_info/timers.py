"""
Timer primitives.

mpv's IPC protocol has no timers, so the daemon keeps its own on
background threads: a periodic timer that is created stopped and later
resumed, and plain one-shot timers. Callbacks run on the timer thread and
must be quick; the scheduler's callbacks only post to a queue.
"""

import logging
import threading
import time
from typing import Callable, List

logger = logging.getLogger("osd_ext_info.timers")


class PeriodicTimer:
    """Fires ``callback`` every ``interval`` seconds while running.

    Fire times are anchored to the moment of ``resume()``
    (resume + k * interval). Fires missed while the process was suspended
    are skipped, not replayed.
    """

    def __init__(self, interval: float, callback: Callable[[], None],
                 name: str = "osd-periodic"):
        self.interval = interval
        self.callback = callback
        self.name = name

        self._lock = threading.Lock()
        self._wake = threading.Event()
        self._running = False
        self._cancelled = False
        self._next_fire = 0.0
        self._thread = None

    @property
    def is_running(self) -> bool:
        return self._running

    def resume(self):
        """Start (or restart) periodic firing, first fire one interval from now."""
        with self._lock:
            if self._cancelled or self._running:
                return
            self._running = True
            self._next_fire = time.monotonic() + self.interval
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, daemon=True,
                                                name=self.name)
                self._thread.start()
        self._wake.set()

    def stop(self):
        """Hold the timer without discarding it; ``resume()`` re-arms."""
        with self._lock:
            self._running = False
        self._wake.set()

    def cancel(self):
        """Stop for good and let the thread exit."""
        with self._lock:
            self._cancelled = True
            self._running = False
        self._wake.set()

    def _run(self):
        while True:
            with self._lock:
                if self._cancelled:
                    return
                running = self._running
                deadline = self._next_fire

            if not running:
                self._wake.wait()
                self._wake.clear()
                continue

            timeout = deadline - time.monotonic()
            if timeout > 0 and self._wake.wait(timeout):
                # State changed (stop/cancel/resume); re-read it
                self._wake.clear()
                continue

            with self._lock:
                if not self._running or self._cancelled:
                    continue
                now = time.monotonic()
                while self._next_fire <= now:
                    self._next_fire += self.interval

            try:
                self.callback()
            except Exception as e:
                logger.error(f"Timer {self.name} callback error: {e}")


class TimerFactory:
    """Creates and tracks timers so they can all be cancelled at shutdown."""

    def __init__(self):
        self._periodic: List[PeriodicTimer] = []
        self._oneshots: List[threading.Timer] = []
        self._lock = threading.Lock()

    def periodic(self, interval: float, callback: Callable[[], None],
                 name: str = "osd-periodic") -> PeriodicTimer:
        """Create a periodic timer in the stopped state."""
        timer = PeriodicTimer(interval, callback, name=name)
        with self._lock:
            self._periodic.append(timer)
        return timer

    def once(self, delay: float, callback: Callable[[], None],
             name: str = "osd-oneshot") -> threading.Timer:
        """Run ``callback`` once after ``delay`` seconds."""
        timer = threading.Timer(max(0.0, delay), callback)
        timer.daemon = True
        timer.name = name
        with self._lock:
            self._oneshots = [t for t in self._oneshots if t.is_alive()]
            self._oneshots.append(timer)
        timer.start()
        return timer

    def cancel_all(self):
        with self._lock:
            periodic, self._periodic = self._periodic, []
            oneshots, self._oneshots = self._oneshots, []
        for timer in oneshots:
            timer.cancel()
        for timer in periodic:
            timer.cancel()
        logger.debug(f"Cancelled {len(periodic)} periodic and {len(oneshots)} one-shot timers")
