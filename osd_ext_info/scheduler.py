"""
OSD Scheduler

Arms the timers of each modality and serializes every message through one
render thread.

Per modality:
    1. no interval -> inert (not armed, key not bound)
    2. periodic timer every ``interval`` seconds, created stopped
    3. first delay: until ``showat`` within the hour, or until the next
       multiple of ``interval`` in wall-clock time
    4. one-shot after that delay resumes the periodic timer and shows the
       message once
    5. optional key binding to the same action

Firing (timer, one-shot or key) only posts a TRIGGER event. The render
thread hands each trigger to a fetch worker; the worker's text comes back
as a SHOW_MESSAGE event and the render thread applies the style overlay
and shows it. A hung fetch blocks its own worker, never the render path.
"""

import itertools
import queue
import threading
import time
from typing import Callable, Dict, Optional, Tuple

from osd_ext_info.events import Event, EventType
from osd_ext_info.logger import get_logger
from osd_ext_info.overlay import StyleOverlay, StyleSnapshot
from osd_ext_info.registry import ModalityConfig, produce_message
from osd_ext_info.timers import PeriodicTimer, TimerFactory
from osd_ext_info.timing import first_delay, is_set, parse_duration


class Scheduler:
    """Per-modality timers plus the single-threaded render loop."""

    def __init__(self, host, config=None, timers: Optional[TimerFactory] = None,
                 overlay: Optional[StyleOverlay] = None,
                 clock: Callable[[], float] = time.time,
                 background_fetch: bool = True):
        self.host = host
        self.config = config
        self.logger = get_logger(__name__, config)
        self.timers = timers or TimerFactory()
        self.overlay = overlay or StyleOverlay(host, config)
        self.clock = clock
        self.background_fetch = background_fetch

        self.restore_style = bool(config.get("osd.restore_style", False)) if config else False

        self.modalities: Dict[str, ModalityConfig] = {}
        self.periodic: Dict[str, PeriodicTimer] = {}
        self.first_delays: Dict[str, int] = {}
        # name -> (snapshot, timer, seq); render thread only
        self._pending_restore: Dict[str, Tuple[StyleSnapshot, object, int]] = {}
        self._restore_seq = itertools.count(1)

        self._queue: "queue.Queue[Event]" = queue.Queue()
        self._in_flight = set()
        self._in_flight_lock = threading.Lock()
        self._render_thread = None
        self._running = False

    # ------------------------------------------------------------------
    # Setup
    # ------------------------------------------------------------------

    def setup_modality(self, modality: ModalityConfig) -> Optional[PeriodicTimer]:
        """Arm the timers and key binding of one modality.

        Returns the periodic timer, or None when the modality stays inert.
        """
        name = modality.name
        self.logger.debug(f"{name}.cfg = {modality.as_dict()}")

        if not modality.enabled:
            self.logger.info(f"{name}: disabled")
            return None
        if not is_set(modality.interval):
            self.logger.info(f"{name}: no interval, not scheduled")
            return None

        interval = parse_duration(modality.interval)
        if interval <= 0:
            self.logger.error(f"{name}: interval '{modality.interval}' is not positive, skipped")
            return None

        self.modalities[name] = modality

        timer = self.timers.periodic(interval, lambda: self.trigger(name),
                                     name=f"{name}-periodic")
        timer.stop()
        self.periodic[name] = timer

        delay = first_delay(interval, modality.showat, self.clock())
        self.first_delays[name] = delay

        def start():
            timer.resume()
            self.trigger(name)

        self.timers.once(delay, start, name=f"{name}-start")
        self.logger.info(f"{name}.interval:{modality.interval} calc.delay:{delay}")

        if modality.key:
            self.host.bind_key(str(modality.key), modality.action_name,
                               lambda: self.trigger(name))
            self.logger.info(f"{name}.key:'{modality.key}' bound to '{modality.action_name}'")

        return timer

    def setup_all(self, modalities) -> int:
        """Set up each modality; returns how many were armed."""
        armed = 0
        for modality in modalities:
            if self.setup_modality(modality) is not None:
                armed += 1
        return armed

    # ------------------------------------------------------------------
    # Triggering + fetch
    # ------------------------------------------------------------------

    def trigger(self, name: str):
        """Request a message for ``name``. Safe from any thread."""
        self._queue.put(Event(EventType.TRIGGER, name, source="trigger"))

    def _dispatch_fetch(self, name: str):
        modality = self.modalities.get(name)
        if modality is None:
            self.logger.warning(f"Trigger for unknown modality '{name}'")
            return

        with self._in_flight_lock:
            if name in self._in_flight:
                self.logger.warning(f"{name}: previous fetch still running, trigger skipped")
                return
            self._in_flight.add(name)

        if self.background_fetch:
            threading.Thread(target=self._fetch, args=(modality,), daemon=True,
                             name=f"{name}-fetch").start()
        else:
            self._fetch(modality)

    def _fetch(self, modality: ModalityConfig):
        try:
            text = produce_message(modality)
        finally:
            with self._in_flight_lock:
                self._in_flight.discard(modality.name)
        if text:
            self._queue.put(Event(EventType.SHOW_MESSAGE,
                                  {"modality": modality.name, "text": text},
                                  source="fetch"))

    # ------------------------------------------------------------------
    # Render loop
    # ------------------------------------------------------------------

    def handle_event(self, event: Event) -> bool:
        """Process one event on the render thread. False means stop."""
        if event.type == EventType.SHUTDOWN:
            return False

        try:
            if event.type == EventType.TRIGGER:
                self._dispatch_fetch(event.data)
            elif event.type == EventType.SHOW_MESSAGE:
                self._show(event.data["modality"], event.data["text"])
            elif event.type == EventType.RESTORE_STYLE:
                self._restore(event.data["modality"], event.data["seq"])
        except Exception as e:
            self.logger.error(f"Render error on {event!r}: {e}")
        return True

    def _show(self, name: str, text: str) -> StyleSnapshot:
        modality = self.modalities[name]
        snapshot = self.overlay.render(text, modality)
        if not self.restore_style:
            return snapshot

        pending = self._pending_restore.pop(name, None)
        if pending is not None:
            # Previous message still up: the new snapshot holds our own overrides
            snapshot, timer, _ = pending
            timer.cancel()
        if not snapshot:
            return snapshot

        seq = next(self._restore_seq)
        timer = self.timers.once(
            modality.duration,
            lambda: self._queue.put(Event(EventType.RESTORE_STYLE,
                                          {"modality": name, "seq": seq},
                                          source="restore")),
            name=f"{name}-restore",
        )
        self._pending_restore[name] = (snapshot, timer, seq)
        return snapshot

    def _restore(self, name: str, seq: int):
        pending = self._pending_restore.get(name)
        if pending is None or pending[2] != seq:
            self.logger.debug(f"{name}: stale restore #{seq} ignored")
            return
        del self._pending_restore[name]
        self.overlay.restore(pending[0])

    def process_pending(self) -> int:
        """Handle every queued event without blocking; returns the count."""
        handled = 0
        while True:
            try:
                event = self._queue.get_nowait()
            except queue.Empty:
                return handled
            handled += 1
            if not self.handle_event(event):
                self._running = False
                return handled

    def _render_loop(self):
        while self._running:
            event = self._queue.get()
            if not self.handle_event(event):
                break
        self._running = False
        self.logger.info("Render loop stopped")

    def start(self):
        """Start the render thread."""
        if self._running:
            return
        self._running = True
        self._render_thread = threading.Thread(target=self._render_loop, daemon=True,
                                               name="osd-render")
        self._render_thread.start()
        self.logger.info(f"Scheduler started with {len(self.modalities)} modalities")

    def stop(self):
        """Cancel all timers and stop the render thread (session end)."""
        self.timers.cancel_all()
        self._queue.put(Event(EventType.SHUTDOWN, source="stop"))
        thread = self._render_thread
        if thread and thread is not threading.current_thread():
            thread.join(timeout=5)
        self.logger.info("Scheduler stopped")

    def wait(self):
        """Block until the render loop exits."""
        thread = self._render_thread
        while thread and thread.is_alive():
            thread.join(timeout=1)
