"""YAML configuration loading."""
import os
from typing import Any, Optional

import yaml


class ConfigError(Exception):
    """Configuration file is missing or malformed."""
    pass


class Config:
    """Read-only configuration backed by a YAML file.

    Supports dot-separated access to nested keys.

    Example:
        config = Config("config/indicators.yaml")
        periods = config.get("indicators.rsi_periods", [14])
        levels = config.get("rsi.levels.overbought", 70)
    """

    def __init__(self, config_path: str):
        """Load configuration.

        Args:
            config_path: Path to the YAML file

        Raises:
            ConfigError: File missing, malformed, or not a mapping
        """
        self._config_path = config_path

        if not os.path.exists(config_path):
            raise ConfigError(f"Config file not found: {config_path}")

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_path}: {e}")

        self._data = self._check_mapping(data, config_path)

    @classmethod
    def from_dict(cls, data: dict) -> "Config":
        """Build a configuration from an in-memory mapping."""
        config = cls.__new__(cls)
        config._config_path = None
        config._data = cls._check_mapping(data, "<dict>")
        return config

    @staticmethod
    def _check_mapping(data: Any, source: str) -> dict:
        if not isinstance(data, dict):
            raise ConfigError(
                f"Config root must be a mapping, got {type(data).__name__} ({source})"
            )
        return data

    @property
    def path(self) -> Optional[str]:
        return self._config_path

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Return a configuration value.

        Args:
            key: Dot-separated key, e.g. "indicators.ma_periods"
            default: Returned when any part of the key is missing

        Returns:
            The value, or default
        """
        value = self._data
        for k in key.split("."):
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        value = self.get(key)
        if value is None:
            raise KeyError(key)
        return value

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None
