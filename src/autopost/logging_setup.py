# src/autopost/logging_setup.py

from __future__ import annotations

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FILE_NAME = "autopost.log"

# The bot runs unattended for weeks and logs every post; keep the file bounded.
LOG_FILE_MAX_BYTES = 5 * 1024 * 1024
LOG_FILE_BACKUPS = 3

# Floors applied to chatty libraries for every handler (file included).
_LIBRARY_LEVELS = {
    "nio": logging.INFO,
    "nio.crypto": logging.WARNING,
    "aiohttp": logging.WARNING,
    "asyncio": logging.WARNING,
}


class _ConsoleNoiseFilter(logging.Filter):
    """
    Console shows:
    - every autopost record at or above the handler level
    - third-party records (nio, aiohttp, captured py.warnings) only at ERROR+
    """

    def __init__(self, app_prefix: str = "autopost") -> None:
        super().__init__()
        self._app_prefix = app_prefix + "."

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(self._app_prefix):
            return True
        return record.levelno >= logging.ERROR


def setup_logging(
    *,
    log_dir: str | Path = ".local/autopost",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path | None:
    """
    Configure the root logger: filtered stderr plus a rotating log file.

    Returns the log file path, or None when log_dir cannot be created (the
    console handler still works; startup reports the real problem later).
    Call this once, before the first log record.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(_ConsoleNoiseFilter())
    root.addHandler(console)

    for name, level in _LIBRARY_LEVELS.items():
        logging.getLogger(name).setLevel(level)
    logging.captureWarnings(True)

    log_file = Path(log_dir) / LOG_FILE_NAME
    try:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file, maxBytes=LOG_FILE_MAX_BYTES, backupCount=LOG_FILE_BACKUPS, encoding="utf-8"
        )
    except OSError as e:
        logging.getLogger(__name__).warning("File logging disabled (%s): %s", log_file, e)
        return None

    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)
    return log_file
