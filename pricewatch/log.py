"""Logging set-up shared by the CLI and the HTTP app."""

from __future__ import annotations

import logging
from typing import Union

_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}

_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _coerce_level(value: Union[str, int, None]) -> int:
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        return _LEVELS.get(value.upper().strip(), logging.INFO)
    return logging.INFO


def configure_logging(level: Union[str, int, None] = "INFO") -> logging.Logger:
    """Attach a single stdout handler to the ``pricewatch`` logger.

    Safe to call more than once: later calls only adjust the level.
    """
    logger = logging.getLogger("pricewatch")
    resolved = _coerce_level(level)
    logger.setLevel(resolved)

    if not getattr(logger, "_pricewatch_configured", False):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        logger.addHandler(handler)
        logger.propagate = False
        logger._pricewatch_configured = True  # type: ignore[attr-defined]

    for handler in logger.handlers:
        handler.setLevel(resolved)
    return logger
