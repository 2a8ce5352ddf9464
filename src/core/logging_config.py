"""Logging setup for the service."""

import logging

from config import LOG_LEVEL

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_configured = False


def setup_logging(level: str = LOG_LEVEL) -> None:
    """Configure root logging once per process.

    Args:
        level: Log level name, e.g. "INFO" or "DEBUG".
    """
    global _configured
    if _configured:
        return
    logging.basicConfig(level=getattr(logging, level, logging.INFO), format=LOG_FORMAT)
    # SQL statement echo is noisy at INFO
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    _configured = True
