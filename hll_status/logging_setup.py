"""Console logging (INFO+) with an optional rotating debug.log (DEBUG+)."""

import logging
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "hll_status"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"

_CONFIGURED = False


def setup_logging(debug_log: bool = False, log_file: str = "debug.log") -> logging.Logger:
    """Configure the package logger. Safe to call multiple times."""
    global _CONFIGURED
    logger = logging.getLogger(LOGGER_NAME)
    if _CONFIGURED:
        return logger

    logger.setLevel(logging.DEBUG)  # master gate
    logger.propagate = False

    console = logging.StreamHandler(sys.stdout)
    console.setLevel(logging.INFO)
    console.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console)

    if debug_log:
        file_handler = RotatingFileHandler(log_file, maxBytes=5 * 1024 * 1024, backupCount=3)
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    _CONFIGURED = True
    return logger
