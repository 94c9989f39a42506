from datetime import datetime

from osd_ext_info.modalities import clock
from osd_ext_info.registry import ModalityConfig


def test_formats_given_time():
    modality = ModalityConfig.from_options("osd-clock", dict(clock.DEFAULTS))
    assert clock.handler(modality, now=datetime(2026, 10, 18, 7, 5)) == "07:05"


def test_custom_format():
    modality = ModalityConfig.from_options("osd-clock", {"format": "%a %d.%m. %H:%M"})
    assert clock.handler(modality, now=datetime(2026, 10, 18, 21, 30)) == "Sun 18.10. 21:30"


def test_default_style_overrides():
    modality = ModalityConfig.from_options("osd-clock", dict(clock.DEFAULTS))
    assert modality.style == {"osd-scale": 2, "osd-bold": True, "osd-align-x": "right"}
    assert "format" in modality.options
