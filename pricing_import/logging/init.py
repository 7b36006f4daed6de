from __future__ import annotations

import logging
import sys
from typing import Any, TextIO

"""Application logger for the pricing importer.

Every line on stdout starts with a label (DEBUG / INFO / WARN / ERROR /
SUMMARY) so that operators and tooling can grep the CLI output. Module code
keeps using logging.getLogger(__name__); those loggers sit under the
"pricing_import" logger and reach the single handler installed here.

SUMMARY lines are produced by services.summary already prefixed with
"SUMMARY "; log_summary() accepts them as-is.
"""

__all__ = [
    "APP_LOGGER_NAME",
    "SUMMARY_LEVEL",
    "SUMMARY_PREFIX",
    "LabeledFormatter",
    "setup_logging",
    "set_level",
    "get_logger",
    "log_summary",
    "reset_logging",
]

APP_LOGGER_NAME = "pricing_import"
SUMMARY_LEVEL = 25  # INFO < SUMMARY < WARNING
SUMMARY_PREFIX = "SUMMARY "

_logger: logging.Logger | None = None


class LabeledFormatter(logging.Formatter):
    """Renders "<LABEL> <message>", with the traceback on following lines when present."""

    LEVEL_LABELS = {
        logging.DEBUG: "DEBUG",
        logging.INFO: "INFO",
        SUMMARY_LEVEL: "SUMMARY",
        logging.WARNING: "WARN",
        logging.ERROR: "ERROR",
        logging.CRITICAL: "CRITICAL",
    }

    def format(self, record: logging.LogRecord) -> str:
        label = self.LEVEL_LABELS.get(record.levelno, record.levelname)
        line = f"{label} {record.getMessage()}"
        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


def setup_logging(level: int = logging.INFO, stream: TextIO | None = None) -> logging.Logger:
    """Install the labeled stdout handler once and return the app logger.

    Later calls return the same logger untouched; use set_level() to change
    verbosity afterwards.
    """
    global _logger
    if _logger is not None:
        return _logger

    logging.addLevelName(SUMMARY_LEVEL, "SUMMARY")
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    # stream は呼び出し時に解決 (pytest の capsys が差し替えた stdout を掴む)
    handler = logging.StreamHandler(stream if stream is not None else sys.stdout)
    handler.setFormatter(LabeledFormatter())
    logger.addHandler(handler)
    logger.propagate = False

    _logger = logger
    set_level(level)
    return logger


def set_level(level: int) -> None:
    """Change the threshold of the app logger and its handlers (CLI --debug)."""
    logger = get_logger()
    logger.setLevel(level)
    for handler in logger.handlers:
        handler.setLevel(level)


def get_logger() -> logging.Logger:
    return _logger if _logger is not None else setup_logging()


def log_summary(line: str, **context: Any) -> None:
    """Emit one SUMMARY line.

    ``line`` may already carry the "SUMMARY " prefix. Keyword arguments are
    rendered as key=value pairs in front of it, e.g. queue_id for replays.
    """
    message = line[len(SUMMARY_PREFIX):] if line.startswith(SUMMARY_PREFIX) else line
    if context:
        message = " ".join(f"{k}={v}" for k, v in context.items()) + " " + message
    get_logger().log(SUMMARY_LEVEL, message)


def reset_logging() -> None:
    """Drop the installed handler and forget the logger (tests)."""
    global _logger
    logger = logging.getLogger(APP_LOGGER_NAME)
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True
    _logger = None
