"""
Logging setup shared by every osd_ext_info module.

Module loggers below ``osd_ext_info`` propagate to the parent logger that
the command line configures; ``get_logger`` gives a logger its own
handlers from the ``logging.*`` config keys.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

DEFAULT_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_LOG_FILE = Path.home() / ".cache" / "osd-ext-info" / "osd-ext-info.log"


class Logger:
    """Configures each named logger once and caches it."""

    _loggers = {}

    @classmethod
    def get_logger(cls, name: str, config=None) -> logging.Logger:
        if name in cls._loggers:
            return cls._loggers[name]

        logger = logging.getLogger(name)
        if not logger.handlers:
            cls._configure_logger(logger, config)

        cls._loggers[name] = logger
        return logger

    @classmethod
    def _configure_logger(cls, logger: logging.Logger, config) -> None:
        get = config.get if config else (lambda key, default=None: default)
        level_str = get("logging.level", "INFO")
        log_file = get("logging.file")
        console_enabled = get("logging.console", True)
        stream = sys.stderr if get("logging.stream", "stdout") == "stderr" else sys.stdout

        # mpv may own the terminal; keep our output out of its status line.
        if os.environ.get("OSD_EXT_INFO_LOG_FILE_ONLY"):
            console_enabled = False
            log_file = log_file or str(DEFAULT_LOG_FILE)

        level = getattr(logging, str(level_str).upper(), logging.INFO)
        logger.setLevel(level)
        formatter = logging.Formatter(DEFAULT_FORMAT, datefmt='%Y-%m-%d %H:%M:%S')

        if console_enabled:
            console_handler = logging.StreamHandler(stream)
            console_handler.setLevel(level)
            console_handler.setFormatter(formatter)
            logger.addHandler(console_handler)

        if log_file:
            log_path = Path(log_file).expanduser()
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.handlers.RotatingFileHandler(
                log_path,
                maxBytes=get("logging.max_bytes", 1_000_000),
                backupCount=get("logging.backup_count", 3))
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)

        logger.propagate = False


def get_logger(name: str, config=None) -> logging.Logger:
    """Logger ``name`` configured from ``config`` (or INFO to stdout)."""
    return Logger.get_logger(name, config)
