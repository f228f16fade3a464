"""Logging setup for the hostport command line."""

from __future__ import annotations

import logging

LOG_FORMAT = "[%(asctime)s] %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Handler installed by the last setup_logging() call
_handler: logging.Handler | None = None


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Attach a stderr handler to the ``hostport`` logger."""
    global _handler
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    logger = logging.getLogger("hostport")
    logger.setLevel(level)

    # Re-running the CLI in one process (tests) must not stack handlers
    if _handler is not None:
        logger.removeHandler(_handler)

    _handler = logging.StreamHandler()
    _handler.setLevel(level)
    _handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    logger.addHandler(_handler)
    return logger


__all__ = ["LOG_FORMAT", "LOG_DATE_FORMAT", "setup_logging"]
