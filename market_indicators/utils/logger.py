"""Logging setup for market_indicators, based on loguru."""
import sys
from typing import Optional

from loguru import logger


# Library code stays silent until the application calls setup_logger()
logger.remove()

_handler_ids: list[int] = []


def setup_logger(
    log_file: Optional[str] = None,
    level: str = "INFO",
    rotation: str = "10 MB",
    retention: str = "30 days",
) -> None:
    """Configure the logging sinks.

    Calling it again replaces the sinks added by the previous call.

    Args:
        log_file: Optional log file path; only stderr is used when omitted
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        rotation: File rotation size
        retention: How long rotated files are kept
    """
    while _handler_ids:
        logger.remove(_handler_ids.pop())

    _handler_ids.append(logger.add(
        sys.stderr,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    ))

    if log_file:
        _handler_ids.append(logger.add(
            log_file,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
            rotation=rotation,
            retention=retention,
            encoding="utf-8",
        ))


def get_logger(name: str):
    """Return a logger bound to a module name.

    Args:
        name: Module name

    Returns:
        loguru logger with ``name`` in its extra dict
    """
    return logger.bind(name=name)
