"""
Display style overlay.

Each modality may override OSD style properties (``osd-scale``,
``osd-bold``, ``osd-align-x``, ...) while its message is shown. ``render``
captures the current values of exactly the overridden properties into a
StyleSnapshot, applies the overrides and shows the text. The snapshot is
returned to the caller; nothing is kept between renders.

Style is not restored right after ``show_text``: mpv draws the message
asynchronously, so restoring at once would restyle the message before it
ever appears. ``restore(snapshot)`` is a separate step, run by the
scheduler after the display duration when ``osd.restore_style`` is on.
"""

from dataclasses import dataclass, field
from typing import Any, Dict

from osd_ext_info.logger import get_logger


@dataclass
class StyleSnapshot:
    """Pre-render values of the style properties one render overrode."""

    modality: str
    values: Dict[str, Any] = field(default_factory=dict)

    def __bool__(self):
        return bool(self.values)


class StyleOverlay:
    """Applies per-modality OSD style around each message."""

    def __init__(self, host, config=None):
        self.host = host
        self.logger = get_logger(__name__, config)

    def render(self, message: str, modality) -> StyleSnapshot:
        """Snapshot, apply overrides, show ``message`` for ``modality.duration``."""
        snapshot = StyleSnapshot(modality.name)
        for name in modality.style:
            snapshot.values[name] = self.host.get_property(name)

        for name, value in modality.style.items():
            self.host.set_property(name, value)

        if snapshot:
            self.logger.debug(f"{modality.name} style saved: {snapshot.values}")
        self.logger.debug(f"{modality.name} msg={message!r}")
        self.host.show_text(message, modality.duration)
        return snapshot

    def restore(self, snapshot: StyleSnapshot):
        """Write the snapshot's values back to the live style properties."""
        for name, value in snapshot.values.items():
            if value is None:
                continue
            self.host.set_property(name, value)
        if snapshot:
            self.logger.debug(f"{snapshot.modality} style restored")
