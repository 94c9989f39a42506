"""
Configuration

YAML settings with dot-notation access, plus mpv-style per-modality
``<modality>.conf`` override files (the ``script-opts`` format: one
``key=value`` per line, ``#`` comments).
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml


class ConfigError(Exception):
    """Raised when a configuration file cannot be read or parsed."""


_DEFAULT_PATHS = [
    Path("~/.config/osd-ext-info/config.yaml"),
    Path("~/.config/mpv/osd-ext-info.yaml"),
]

_DEFAULT_SCRIPT_OPTS = "~/.config/mpv/script-opts"


class Config:
    """Read-only view over a nested settings dict.

    ``get("mpv.ipc_socket")`` walks nested mappings; a missing segment
    returns the default.
    """

    def __init__(self, data: Optional[dict] = None, path: Optional[Path] = None):
        self._data = data or {}
        self.path = path

    def get(self, key: str, default: Any = None) -> Any:
        node = self._data
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def section(self, key: str) -> dict:
        """Return a nested mapping (empty dict when absent)."""
        value = self.get(key, {})
        return dict(value) if isinstance(value, dict) else {}

    def set(self, key: str, value: Any) -> None:
        parts = key.split(".")
        node = self._data
        for part in parts[:-1]:
            node = node.setdefault(part, {})
        node[parts[-1]] = value

    @property
    def script_opts_dir(self) -> Path:
        return Path(self.get("mpv.script_opts_dir", _DEFAULT_SCRIPT_OPTS)).expanduser()

    def __repr__(self):
        return f"Config(path={self.path!r})"


def load_config(path: Optional[str] = None) -> Config:
    """Load settings from ``path`` or the first default location found.

    A missing file yields an empty config (all defaults); an unreadable or
    malformed one raises ConfigError.
    """
    if path:
        candidates = [Path(path).expanduser()]
    else:
        env_path = os.environ.get("OSD_EXT_INFO_CONFIG")
        candidates = [Path(env_path)] if env_path else [p.expanduser() for p in _DEFAULT_PATHS]

    for candidate in candidates:
        if not candidate.exists():
            continue
        try:
            with open(candidate, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigError(f"Cannot load {candidate}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{candidate}: top level must be a mapping")
        return Config(data, candidate)

    if path:
        raise ConfigError(f"Config file not found: {path}")
    return Config()


# ---------------------------------------------------------------------------
# mpv script-opts
# ---------------------------------------------------------------------------

_TRUE = ("yes", "true", "1", "on")
_FALSE = ("no", "false", "0", "off")


def coerce_option(raw: str, default: Any) -> Any:
    """Convert a script-opts string to the type of its default value.

    Same rules as mpv's read_options: booleans accept yes/no, numbers
    must parse, everything else stays a string. A default of ``None`` or
    ``False`` on an optional field (``interval``, ``showat``, ``key``)
    accepts any string, with ``no``/``false``/empty meaning "unset".
    """
    text = raw.strip()
    if isinstance(default, bool) and default is not False:
        if text.lower() in _TRUE:
            return True
        if text.lower() in _FALSE:
            return False
        raise ValueError(f"expected yes/no, got {raw!r}")
    if default is None or default is False:
        if text == "" or text.lower() in ("no", "false"):
            return default
        if text.lower() in ("yes", "true"):
            return True
        return text
    if isinstance(default, int):
        try:
            return int(text)
        except ValueError:
            return float(text)
    if isinstance(default, float):
        return float(text)
    return text


def read_options(defaults: dict, name: str, directory: Optional[Path] = None,
                 logger=None) -> dict:
    """Overlay ``<directory>/<name>.conf`` onto ``defaults``.

    Unknown keys and values that don't convert are logged and skipped.
    Returns a new dict; ``defaults`` is not modified.
    """
    options = dict(defaults)
    directory = Path(directory or _DEFAULT_SCRIPT_OPTS).expanduser()
    conf_path = directory / f"{name}.conf"
    if not conf_path.exists():
        return options

    with open(conf_path, encoding="utf-8") as f:
        for lineno, line in enumerate(f, 1):
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                if logger:
                    logger.warning(f"{conf_path}:{lineno}: expected key=value")
                continue
            key, raw = line.split("=", 1)
            key = key.strip()
            if key not in options:
                if logger:
                    logger.warning(f"{conf_path}:{lineno}: unknown option '{key}'")
                continue
            try:
                options[key] = coerce_option(raw, options[key])
            except ValueError as e:
                if logger:
                    logger.warning(f"{conf_path}:{lineno}: {key}: {e}")

    return options
