"""Logging configuration."""

import logging
import sys


LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def get_logger(name: str, level: str = 'INFO') -> logging.Logger:
    """
    Get configured logger.

    Args:
        name: Logger name
        level: Log level

    Returns:
        Configured logger
    """
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(getattr(logging, level.upper()))
    return logger


def set_level(level: str) -> None:
    """Set the level of every clusterkit logger created so far."""
    for name, candidate in logging.Logger.manager.loggerDict.items():
        if name.startswith('clusterkit') and isinstance(candidate, logging.Logger):
            candidate.setLevel(getattr(logging, level.upper()))
