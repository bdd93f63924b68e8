"""Logger hierarchy for constago and the handlers the CLI installs on it."""

from __future__ import annotations

import logging
from pathlib import Path

ROOT_LOGGER = "constago"
CONSOLE_FORMAT = "[constago] %(levelname)s %(message)s"
FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return ``constago.<name>``, or the root constago logger."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}" if name else ROOT_LOGGER)


def _handler(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(*, verbose: bool = False, log_file: Path | None = None) -> logging.Logger:
    """Route constago records to stderr and, when ``log_file`` is given, to that file.

    The file always receives debug records so a run can be diagnosed after the
    fact without rerunning it with ``--verbose``. Calling this again replaces
    the handlers installed by the previous call.
    """
    console_level = logging.DEBUG if verbose else logging.INFO
    logger = get_logger()
    logger.propagate = False
    for existing in list(logger.handlers):
        logger.removeHandler(existing)
        existing.close()

    logger.addHandler(_handler(logging.StreamHandler(), console_level, CONSOLE_FORMAT))
    level = console_level
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.addHandler(_handler(logging.FileHandler(log_file, encoding="utf-8"), logging.DEBUG, FILE_FORMAT))
        level = logging.DEBUG
    logger.setLevel(level)
    return logger


__all__ = ["configure_logging", "get_logger"]
