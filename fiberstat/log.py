"""Debug log setup.

Every module logs through a child of the ``fiberstat`` logger; records end up
at the handler configured here. Without ``--debug`` nothing is
written anywhere.
"""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "fiberstat"
LOG_FORMAT = "[%(shortlevel)s] %(message)s"


class LevelFormatter(logging.Formatter):
    """Formatter that renders levels as error/warn/info/debug."""

    _NAMES = {
        logging.CRITICAL: "error",
        logging.ERROR: "error",
        logging.WARNING: "warn",
        logging.INFO: "info",
        logging.DEBUG: "debug",
    }

    def format(self, record: logging.LogRecord) -> str:
        record.shortlevel = self._NAMES.get(record.levelno, record.levelname.lower())
        return super().format(record)


def setup_logging(debug: bool, path: str) -> logging.Logger:
    """Configure the package logger and return it.

    With *debug* set, the file at *path* is truncated and receives one line
    per record. ``FileHandler`` flushes after each record.
    """
    logger = logging.getLogger(LOGGER_NAME)
    teardown_logging()
    logger.propagate = False

    handler: logging.Handler | None = None
    if debug:
        try:
            handler = logging.FileHandler(path, mode="w", encoding="utf-8")
        except OSError as e:
            print(f"fiberstat: warning: can't write debug log {path}: {e}", file=sys.stderr)
    if handler is not None:
        handler.setFormatter(LevelFormatter(LOG_FORMAT))
        logger.setLevel(logging.DEBUG)
    else:
        handler = logging.NullHandler()
        logger.setLevel(logging.WARNING)
    logger.addHandler(handler)
    return logger


def teardown_logging() -> None:
    """Detach and close every handler of the package logger and reset it."""
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
