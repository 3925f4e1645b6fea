"""Logging configuration helpers."""

import logging

LOGGER_NAME = "grumble"
LOG_FORMAT = "%(levelname)s: %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send ``grumble`` records to one stream handler at ``level``.

    Repeated calls only adjust the level, so app factories and tests can call
    this freely.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level.upper())
    if logger.handlers:
        return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    logger.propagate = False
