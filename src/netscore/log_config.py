"""Logging setup for the netscore package logger."""

from __future__ import annotations

import logging
from pathlib import Path

from netscore.errors import ConfigurationError

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# LOG_LEVEL values: 0 silent, 1 info, 2 debug
_LEVELS = {
    0: logging.CRITICAL + 1,
    1: logging.INFO,
    2: logging.DEBUG,
}


def configure_logging(level: int = 0, log_file: Path | None = None) -> logging.Logger:
    """Configure the ``netscore`` logger.

    Stdout is reserved for JSON records, so log output only ever goes to
    ``log_file``. Without a file the logger gets a NullHandler.

    Raises:
        ConfigurationError: If ``log_file`` is given but does not exist.
    """
    logger = logging.getLogger("netscore")
    logger.setLevel(_LEVELS.get(level, logging.CRITICAL + 1))
    logger.propagate = False

    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if log_file is None:
        logger.addHandler(logging.NullHandler())
        return logger

    if not log_file.exists():
        raise ConfigurationError(f"LOG_FILE {log_file} does not exist")

    handler = logging.FileHandler(log_file, mode="a", encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return logger
