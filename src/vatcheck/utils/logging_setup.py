"""Shared logger configuration for the project."""

from __future__ import annotations

import logging
import os
import sys
from typing import Final

_LOGGER_NAME: Final = "vatcheck"
_LEVEL_ENV: Final = "VATCHECK_LOG_LEVEL"


def _resolve_level(level: int | str) -> int | None:
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else None


def setup_logger(level: int | str | None = None) -> logging.Logger:
    """Return the shared vatcheck logger configured for console output.

    Without *level* the ``VATCHECK_LOG_LEVEL`` environment variable is used;
    a logger that already has a level keeps it. Unknown level names fall
    back to INFO. Log lines go to stderr so that command output on stdout
    stays machine readable.
    """

    logger = logging.getLogger(_LOGGER_NAME)
    logger.propagate = False

    if not any(isinstance(handler, logging.StreamHandler) for handler in logger.handlers):
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(
            logging.Formatter("[%(asctime)s] %(levelname)s %(name)s - %(message)s", "%H:%M:%S")
        )
        logger.addHandler(handler)

    if level is None:
        level = os.getenv(_LEVEL_ENV, "").strip() or None
    if level is not None:
        resolved = _resolve_level(level)
        if resolved is None:
            logger.setLevel(logging.INFO)
            logger.warning("Unbekannter Log-Level %r, verwende INFO", level)
        else:
            logger.setLevel(resolved)
    elif logger.level == logging.NOTSET:
        logger.setLevel(logging.INFO)

    return logger


def get_logger(component: str) -> logging.Logger:
    """Return the child logger ``vatcheck.<component>``."""

    return setup_logger().getChild(component)
