"""
Logging setup shared by all metronome components.

Every logger gets one stdout handler with a compact single-line format:

    [W 14:23:45.123 manager  ] Sound file not found: tick.wav
"""

import logging
import os
import sys
import threading

LEVEL_ENV_VAR = "METRONOME_LOG_LEVEL"
DEFAULT_LEVEL = "INFO"

_handler_lock = threading.Lock()


class CompactFormatter(logging.Formatter):
    """One line per record: level initial, time with millis, short module name."""

    def __init__(self):
        super().__init__(
            fmt="[%(level_char)s %(asctime)s.%(msecs)03d %(short_name)-9.9s] %(message)s",
            datefmt="%H:%M:%S",
        )

    def format(self, record: logging.LogRecord) -> str:
        record.level_char = record.levelname[0]
        record.short_name = record.name.rsplit(".", 1)[-1]
        return super().format(record)


def resolve_level(level: str | None = None) -> int:
    """Turn a level name (or the environment default) into a logging level."""
    name = (level or os.getenv(LEVEL_ENV_VAR) or DEFAULT_LEVEL).upper()
    return logging.getLevelNamesMapping().get(name, logging.INFO)


def get_logger(name: str, level: str | None = None) -> logging.Logger:
    """
    Get a logger with the compact stdout handler attached.

    Args:
        name: Component name (usually __name__)
        level: DEBUG/INFO/WARNING/ERROR; defaults to $METRONOME_LOG_LEVEL, then INFO

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    with _handler_lock:
        if not logger.handlers:
            handler = logging.StreamHandler(sys.stdout)
            handler.setFormatter(CompactFormatter())
            logger.addHandler(handler)

    return logger
