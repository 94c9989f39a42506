"""Shared fakes: an in-memory mpv host and manually fired timers."""

import pytest

from osd_ext_info.config import Config


class FakeHost:
    """Records OSD calls; style properties live in a dict."""

    def __init__(self, properties=None):
        self.properties = dict(properties or {
            "osd-scale": 1,
            "osd-bold": False,
            "osd-align-x": "center",
        })
        self.shown = []
        self.bindings = {}
        self.set_calls = []

    def get_property(self, name):
        return self.properties.get(name)

    def set_property(self, name, value):
        self.set_calls.append((name, value))
        self.properties[name] = value

    def show_text(self, text, duration):
        self.shown.append((text, duration, dict(self.properties)))

    def bind_key(self, key, action, callback):
        self.bindings[key] = (action, callback)

    def press(self, key):
        self.bindings[key][1]()


class FakePeriodic:
    def __init__(self, interval, callback, name):
        self.interval = interval
        self.callback = callback
        self.name = name
        self.running = False
        self.stop_calls = 0
        self.cancelled = False

    def stop(self):
        self.running = False
        self.stop_calls += 1

    def resume(self):
        self.running = True

    def cancel(self):
        self.cancelled = True
        self.running = False

    def fire(self):
        assert self.running, f"{self.name} fired while stopped"
        self.callback()


class FakeOneShot:
    def __init__(self, delay, callback, name):
        self.delay = delay
        self.callback = callback
        self.name = name
        self.fired = False
        self.cancelled = False

    def cancel(self):
        self.cancelled = True

    def fire(self):
        self.fired = True
        self.callback()


class FakeTimers:
    """TimerFactory stand-in; tests fire timers by hand."""

    def __init__(self):
        self.periodic_timers = []
        self.oneshots = []
        self.cancelled = False

    def periodic(self, interval, callback, name="osd-periodic"):
        timer = FakePeriodic(interval, callback, name)
        self.periodic_timers.append(timer)
        return timer

    def once(self, delay, callback, name="osd-oneshot"):
        timer = FakeOneShot(delay, callback, name)
        self.oneshots.append(timer)
        return timer

    def cancel_all(self):
        self.cancelled = True
        for timer in self.periodic_timers:
            timer.cancel()

    def named(self, name):
        return next(t for t in self.oneshots if t.name == name)


@pytest.fixture
def host():
    return FakeHost()


@pytest.fixture
def timers():
    return FakeTimers()


@pytest.fixture
def empty_config(tmp_path):
    # Point script-opts at an empty directory so a developer's own
    # ~/.config/mpv/script-opts never leaks into tests.
    return Config({"mpv": {"script_opts_dir": str(tmp_path / "script-opts")}})
