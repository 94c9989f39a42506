"""Modality definitions for periodic OSD messages.

Each .py file in this package defines one modality with standardized attributes:
    MODALITY_NAME: str        -- config section / script-opts name (e.g. "osd-clock")
    DEFAULTS: dict            -- default options; keys starting with "osd-" are
                                 OSD style overrides applied while the message shows
    handler(modality) -> str  -- build the message text; failures come back as
                                 an error message, not an exception

Optional:
    ENABLED: bool             -- False to ship the modality switched off (default True)
"""
