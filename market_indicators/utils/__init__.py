"""Logging and configuration helpers."""

from .config import Config, ConfigError
from .logger import get_logger, setup_logger

__all__ = ["Config", "ConfigError", "get_logger", "setup_logger"]
