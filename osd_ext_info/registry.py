"""Modality Registry: discovers modality definitions and builds their configs.

Each modality is a Python module in osd_ext_info/modalities/ with
standardized attributes. This module scans that package at import time and
assembles:
    - MODALITY_HANDLERS: dict mapping modality name -> handler function
    - MODALITY_DEFAULTS: dict mapping modality name -> default options
    - build_modality(): defaults + YAML section + script-opts -> ModalityConfig
    - produce_message(): runs a handler, turning exceptions into error text
"""

import importlib
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from osd_ext_info.config import Config, read_options

logger = logging.getLogger("osd_ext_info.registry")

# Option names that steer scheduling; everything else is handler-specific
SCHEDULE_KEYS = ("interval", "showat", "duration", "key", "enabled")
STYLE_PREFIX = "osd-"


# ---------------------------------------------------------------------------
# Auto-discovery
# ---------------------------------------------------------------------------

_modality_modules = []

_modalities_dir = Path(__file__).parent / "modalities"
for _path in sorted(_modalities_dir.glob("*.py")):
    if _path.name.startswith("_"):
        continue
    _mod_name = f"osd_ext_info.modalities.{_path.stem}"
    try:
        _mod = importlib.import_module(_mod_name)
    except Exception as _e:
        logger.error(f"Failed to load modality module {_mod_name}: {_e}")
        continue
    _missing = [a for a in ("MODALITY_NAME", "DEFAULTS", "handler") if not hasattr(_mod, a)]
    if _missing:
        logger.error(f"Modality module {_mod_name} missing required attributes: {_missing}")
        continue
    _modality_modules.append(_mod)


MODALITY_HANDLERS: Dict[str, Callable] = {}
MODALITY_DEFAULTS: Dict[str, dict] = {}
MODALITY_ENABLED: Dict[str, bool] = {}

for _mod in _modality_modules:
    MODALITY_HANDLERS[_mod.MODALITY_NAME] = _mod.handler
    MODALITY_DEFAULTS[_mod.MODALITY_NAME] = dict(_mod.DEFAULTS)
    MODALITY_ENABLED[_mod.MODALITY_NAME] = getattr(_mod, "ENABLED", True)

logger.debug(f"Modality registry: {sorted(MODALITY_HANDLERS)}")


def _optional(value):
    """Blank, "no", "false" and False all mean the option is switched off."""
    if value is False:
        return None
    if isinstance(value, str) and value.strip().lower() in ("", "no", "false", "none"):
        return None
    return value


# ---------------------------------------------------------------------------
# ModalityConfig
# ---------------------------------------------------------------------------

@dataclass
class ModalityConfig:
    """Resolved configuration of one modality.

    ``style`` holds the OSD property overrides (``osd-*`` options),
    ``options`` the handler-specific fields. No ``interval`` means the
    modality is loaded but never scheduled or bound.
    """

    name: str
    interval: Any = None
    showat: Any = None
    duration: float = 2.0
    key: Any = None
    enabled: bool = True
    style: Dict[str, Any] = field(default_factory=dict)
    options: Dict[str, Any] = field(default_factory=dict)
    handler: Optional[Callable[["ModalityConfig"], str]] = field(
        default=None, repr=False, compare=False)

    @classmethod
    def from_options(cls, name: str, options: dict,
                     handler: Optional[Callable] = None) -> "ModalityConfig":
        """Split a flat option dict into schedule fields, style and options."""
        style = {k: v for k, v in options.items() if k.startswith(STYLE_PREFIX)}
        rest = {k: v for k, v in options.items()
                if k not in SCHEDULE_KEYS and not k.startswith(STYLE_PREFIX)}
        return cls(
            name=name,
            interval=_optional(options.get("interval")),
            showat=_optional(options.get("showat")),
            duration=float(options.get("duration", 2.0)),
            key=_optional(options.get("key")),
            enabled=bool(options.get("enabled", True)),
            style=style,
            options=rest,
            handler=handler,
        )

    @property
    def action_name(self) -> str:
        """Key-binding action name: ``osd-clock`` -> ``osd_clock``."""
        return self.name.replace("-", "_")

    def get(self, key: str, default: Any = None) -> Any:
        if key in SCHEDULE_KEYS:
            value = getattr(self, key)
            return default if value is None else value
        if key in self.style:
            return self.style[key]
        return self.options.get(key, default)

    def as_dict(self) -> dict:
        """Flat option view (for logging the active config)."""
        flat = {k: getattr(self, k) for k in SCHEDULE_KEYS}
        flat.update(self.style)
        flat.update(self.options)
        return flat


# ---------------------------------------------------------------------------
# Building configs
# ---------------------------------------------------------------------------

def modality_names() -> List[str]:
    return sorted(MODALITY_HANDLERS)


def build_modality(name: str, config: Optional[Config] = None,
                   overrides: Optional[dict] = None) -> ModalityConfig:
    """Defaults, then ``modalities.<name>`` from YAML, then ``<name>.conf``.

    ``overrides`` (e.g. from the command line) win over all of them.
    """
    if name not in MODALITY_DEFAULTS:
        raise KeyError(f"Unknown modality '{name}'")
    config = config or Config()

    options = dict(MODALITY_DEFAULTS[name])
    options.setdefault("enabled", MODALITY_ENABLED[name])
    options.update(config.section(f"modalities.{name}"))
    options = read_options(options, name, config.script_opts_dir, logger=logger)
    if overrides:
        options.update(overrides)

    modality = ModalityConfig.from_options(name, options, MODALITY_HANDLERS[name])
    logger.debug(f"{name}.cfg = {modality.as_dict()}")
    return modality


def load_modalities(config: Optional[Config] = None,
                    names: Optional[List[str]] = None) -> List[ModalityConfig]:
    """Build every known modality (or just ``names``), enabled or not."""
    return [build_modality(name, config) for name in (names or modality_names())]


def produce_message(modality: ModalityConfig) -> str:
    """Run the modality's handler. Never raises: errors become message text."""
    handler = modality.handler or MODALITY_HANDLERS.get(modality.name)
    if handler is None:
        logger.warning(f"Unknown modality: {modality.name}")
        return f"ERR: unknown modality '{modality.name}'"
    try:
        return handler(modality)
    except Exception as e:
        logger.error(f"Modality handler error ({modality.name}): {e}")
        return f"ERR: {modality.name}: {e}"
