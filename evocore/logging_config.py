"""Logging setup for evocore entry points.

Library modules only create ``logging.getLogger(__name__)`` loggers under the
``evocore`` namespace and never configure handlers; runners call
``configure_logging`` once at startup.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable

LOG_LEVEL_ENV = "EVOCORE_LOG_LEVEL"
DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
DEFAULT_DATEFMT = "%H:%M:%S"

# Modules that log once per child or per mutation attempt at DEBUG.
PER_OFFSPRING_LOGGERS = (
    "evocore.neural.genome",
    "evocore.evolution.reproduction_coordinator",
    "evocore.evolution.generation",
)


def configure_logging(
    *,
    level: str | None = None,
    format: str = DEFAULT_FORMAT,
    datefmt: str = DEFAULT_DATEFMT,
    per_offspring_debug: bool = False,
    extra_loggers: Iterable[str] | None = None,
) -> logging.Logger:
    """Configure root logging and the ``evocore`` package logger.

    Args:
        level: Explicit log level name. Falls back to ``EVOCORE_LOG_LEVEL`` and
            then INFO.
        format: Log record format string.
        datefmt: Timestamp format string.
        per_offspring_debug: Keep per-child DEBUG records when the level is
            DEBUG.
        extra_loggers: Additional logger names set to the resolved level.

    Returns:
        The ``evocore`` logger.
    """
    raw_level = level if level is not None else os.getenv(LOG_LEVEL_ENV)
    resolved_level = (raw_level or "INFO").upper()
    logging.basicConfig(level=resolved_level, format=format, datefmt=datefmt)

    package_logger = logging.getLogger("evocore")
    package_logger.setLevel(resolved_level)

    if resolved_level == "DEBUG" and not per_offspring_debug:
        for name in PER_OFFSPRING_LOGGERS:
            logging.getLogger(name).setLevel(logging.INFO)

    for name in extra_loggers or ():
        logging.getLogger(name).setLevel(resolved_level)

    package_logger.debug("Logging configured at %s", resolved_level)
    return package_logger
