import random

import pytest

from osd_ext_info.timing import aligned_delay, delay_until, first_delay, is_set, parse_duration

# 2026-10-18 14:10:00 UTC
AT_MINUTE_10 = 1792332600


@pytest.mark.parametrize("spec, expected", [
    ("15m", 900),
    ("1h 33m 5s", 5585),
    ("45", 45),
    ("", 0),
    (None, 0),
    (45, 45),
    (2.5, 2),
    ("5s 1h", 3605),
    ("1h30m", 5400),
    ("soon", 0),
    ("  90 ", 90),
])
def test_parse_duration(spec, expected):
    assert parse_duration(spec) == expected


def test_reference_time_is_minute_10():
    assert AT_MINUTE_10 % 3600 == 600


def test_aligned_delay_bounds_and_boundary():
    rng = random.Random(7)
    for _ in range(500):
        interval = rng.randint(1, 7200)
        now = rng.randint(0, 2_000_000_000)
        delay = aligned_delay(interval, now)
        assert 0 <= delay < interval
        assert (now + delay) % interval == 0


def test_aligned_delay_on_boundary_is_zero():
    assert aligned_delay(900, 900 * 1000) == 0


def test_aligned_delay_is_pure():
    assert aligned_delay(900, AT_MINUTE_10 + 17) == aligned_delay(900, AT_MINUTE_10 + 17)


def test_aligned_delay_quarter_hour():
    # 14:10:00 -> next quarter hour is 14:15:00
    assert aligned_delay(900, AT_MINUTE_10) == 300


def test_delay_until_formula():
    rng = random.Random(11)
    for _ in range(500):
        target = rng.randint(0, 3599)
        now = rng.randint(0, 2_000_000_000)
        delay = delay_until(target, now)
        position = now % 3600
        assert 0 <= delay < 3600
        if position <= target:
            assert delay == target - position
        else:
            assert delay == 3600 - position + target


def test_delay_until_wraps_to_next_hour():
    # target minute 5, now minute 10 -> 55 minutes
    assert delay_until(5 * 60, AT_MINUTE_10) == 55 * 60


def test_first_delay_show_at_58m_from_minute_10():
    assert first_delay(3600, "58m", AT_MINUTE_10) == 2880


def test_first_delay_without_show_at_aligns():
    assert first_delay(900, None, AT_MINUTE_10 + 60) == 240
    assert first_delay(900, "", AT_MINUTE_10 + 60) == 240


@pytest.mark.parametrize("value, expected", [
    (None, False), (False, False), ("", False), ("  ", False),
    ("58m", True), (0, True), ("0", True),
])
def test_is_set(value, expected):
    assert is_set(value) is expected
