"""Logging configuration for EOLRadar."""

import logging
import sys

LOGGER_NAME = "eolradar"
LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"


def setup_logging(level: str = "INFO") -> logging.Logger:
    """Attach a console handler to the package logger.

    Calling this more than once only adjusts the level; handlers are never
    duplicated.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR).

    Returns:
        The configured ``eolradar`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    numeric = getattr(logging, level.upper())
    logger.setLevel(numeric)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)

    for handler in logger.handlers:
        handler.setLevel(numeric)

    return logger
