"""
Logging setup using Python's built-in logging with rotation.
"""
import logging
from logging.handlers import RotatingFileHandler

from . import config

FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'


def setup_logging(level=logging.INFO, log_file=config.LOG_FILE) -> logging.Logger:
    """Attach console (and optional rotating file) handlers to the package logger."""
    logger = logging.getLogger('robot_nav')
    if logger.handlers:
        return logger
    fmt = logging.Formatter(FORMAT)

    console = logging.StreamHandler()
    console.setFormatter(fmt)
    logger.addHandler(console)

    if log_file:
        handler = RotatingFileHandler(
            log_file,
            maxBytes=config.LOG_MAX_BYTES,
            backupCount=config.LOG_BACKUP_COUNT
        )
        handler.setFormatter(fmt)
        logger.addHandler(handler)

    logger.setLevel(level)
    return logger
