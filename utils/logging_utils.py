"""
Logging helpers shared by services and agents
"""

import logging
import os
from typing import Dict

_loggers: Dict[str, logging.Logger] = {}

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def get_logger(name: str, level: int = None) -> logging.Logger:
    """
    Get or create a logger instance

    Args:
        name: Logger name (typically __name__)
        level: Logging level (defaults to LOG_LEVEL env var, then INFO)

    Returns:
        Logger instance
    """
    if name not in _loggers:
        if level is None:
            level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)

        logger = logging.getLogger(name)
        logger.setLevel(level)

        if not logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(level)
            handler.setFormatter(logging.Formatter(LOG_FORMAT))
            logger.addHandler(handler)

        _loggers[name] = logger

    return _loggers[name]
