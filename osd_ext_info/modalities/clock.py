"""Modality definition: osd-clock (current local time)."""

from datetime import datetime

MODALITY_NAME = "osd-clock"

DEFAULTS = {
    "interval": "15m",
    "showat": None,
    "format": "%H:%M",
    "duration": 2.5,
    "key": "h",
    "osd-scale": 2,
    "osd-bold": True,
    "osd-align-x": "right",
}


def handler(modality, now: datetime = None) -> str:
    """Return ``now`` (default: local time) in the configured strftime format."""
    now = now or datetime.now()
    return now.strftime(modality.get("format", "%H:%M"))
