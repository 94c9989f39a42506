"""
Duration parsing and first-fire delay arithmetic.

All functions are pure: ``now`` is passed in as epoch seconds so callers
(and tests) control the clock.
"""

import math
import re

SECONDS_PER_HOUR = 3600

_UNITS = {"h": 3600, "m": 60, "s": 1}
_UNIT_RE = {unit: re.compile(rf"(\d+){unit}") for unit in _UNITS}
_NUMBER_RE = re.compile(r"^\s*\d+(?:\.\d*)?\s*$")


def parse_duration(spec) -> int:
    """Human readable duration to seconds: ``"15m 3s"`` -> 903.

    A plain number (int, float or numeric string) is taken as seconds.
    Otherwise ``<digits>h``, ``<digits>m`` and ``<digits>s`` are looked up
    independently and summed; units that are absent contribute nothing.
    Never raises: ``None``, ``""`` and junk all give 0.
    """
    if spec is None or isinstance(spec, bool):
        return 0
    if isinstance(spec, (int, float)):
        return int(spec)

    text = str(spec)
    if _NUMBER_RE.match(text):
        return int(float(text))

    seconds = 0
    for unit, mult in _UNITS.items():
        m = _UNIT_RE[unit].search(text)
        if m:
            seconds += int(m.group(1)) * mult
    return seconds


def aligned_delay(interval: int, now: float) -> int:
    """Seconds until the next multiple of ``interval`` in epoch time.

    Result is in ``[0, interval)``. ``interval`` must be positive.
    """
    now = int(now)
    return interval * math.ceil(now / interval) - now


def delay_until(target: int, now: float) -> int:
    """Seconds until ``target`` (offset within the hour) comes round again.

    Already past this hour wraps to the next one, so ``target`` in
    ``[0, 3600)`` gives a result in ``[0, 3600)``.
    """
    position = int(now) % SECONDS_PER_HOUR
    delay = target - position
    if delay < 0:
        delay += SECONDS_PER_HOUR
    return delay


def is_set(value) -> bool:
    """True for a configured option; None, False and blank strings are unset."""
    if value is None or value is False:
        return False
    if isinstance(value, str):
        return value.strip() != ""
    return True


def first_delay(interval: int, showat, now: float) -> int:
    """First-fire delay: hour offset when ``showat`` is set, else alignment."""
    if is_set(showat):
        return delay_until(parse_duration(showat), now)
    return aligned_delay(interval, now)
