"""
Event types for the render queue.

Timer threads, key bindings and fetch workers never touch the OSD
directly: they post typed events on a queue.Queue and the single render
thread consumes them in order.
"""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any
import time


class EventType(Enum):
    """All event types on the render queue."""

    TRIGGER = auto()            # Fetch + show a modality (data: modality name)
    SHOW_MESSAGE = auto()       # Message ready (data: dict with modality, text)
    RESTORE_STYLE = auto()      # Pending restore due (data: dict with modality, seq)
    SHUTDOWN = auto()           # Stop the render loop


@dataclass
class Event:
    """A typed event flowing to the render thread."""

    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.monotonic)
    source: str = ""

    def __repr__(self):
        data_repr = repr(self.data)
        if len(data_repr) > 80:
            data_repr = data_repr[:77] + "..."
        return f"Event({self.type.name}, data={data_repr}, source={self.source!r})"
