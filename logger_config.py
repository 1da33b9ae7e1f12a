"""
Logging configuration shared by the Lambda handler and the workshop CLI.

Lambda forwards stdout to CloudWatch Logs and the GitHub Actions runner
shows it in the job log, so both get the same plain stdout format.
"""
import logging
import os
import sys
from typing import Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_loggers: Dict[str, logging.Logger] = {}


def _resolve_level(level: Optional[str]) -> int:
    name = (level or os.environ.get('LOG_LEVEL', 'INFO')).upper()
    return getattr(logging, name, logging.INFO)


def get_logger(name: str = None) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (defaults to this module's name if not provided)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name or __name__)

    # Avoid adding handlers multiple times
    if logger.handlers:
        return logger

    logger.setLevel(_resolve_level(None))

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(logger.level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
    logger.addHandler(handler)

    # Prevent propagation to root logger to avoid duplicate logs
    logger.propagate = False

    _loggers[logger.name] = logger
    return logger


def set_log_level(level: str) -> None:
    """Apply a level to every logger handed out by get_logger."""
    resolved = _resolve_level(level)
    for logger in _loggers.values():
        logger.setLevel(resolved)
        for handler in logger.handlers:
            handler.setLevel(resolved)
