"""Logging setup shared by the bundleweave CLI and service."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER_NAME = "bundleweave"
_CONSOLE_FORMAT = "[bundleweave] %(levelname)s %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str | None = None) -> logging.Logger:
    """Return a logger nested under ``bundleweave`` (``bundleweave.<name>``)."""
    return logging.getLogger(f"{_LOGGER_NAME}.{name}" if name else _LOGGER_NAME)


def _level_for(verbose: bool, quiet: bool) -> int:
    if verbose:
        return logging.DEBUG
    return logging.WARNING if quiet else logging.INFO


def _formatted(handler: logging.Handler, level: int, fmt: str) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    return handler


def configure_logging(
    *, verbose: bool = False, quiet: bool = False, log_file: Path | None = None
) -> logging.Logger:
    """Route the bundleweave logger to stderr and, optionally, ``log_file``.

    ``verbose`` wins over ``quiet``. Quiet mode is used when the generated
    document is printed to stdout so that only warnings reach the terminal.
    Calling this again replaces the previous handlers.
    """
    level = _level_for(verbose, quiet)
    logger = logging.getLogger(_LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    handlers = [_formatted(logging.StreamHandler(), level, _CONSOLE_FORMAT)]
    if log_file is not None:
        handlers.append(_formatted(logging.FileHandler(log_file, encoding="utf-8"), level, _FILE_FORMAT))

    for stale in list(logger.handlers):
        logger.removeHandler(stale)
        stale.close()
    for handler in handlers:
        logger.addHandler(handler)
    return logger


__all__ = ["configure_logging", "get_logger"]
