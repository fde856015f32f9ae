"""Configuration and logging seams shared across :mod:`osmchangesets`."""

from __future__ import annotations

from .config import AppConfig, ConfigError, load_config
from .logging import configure_logging, get_logger

__all__ = [
    "AppConfig",
    "ConfigError",
    "configure_logging",
    "get_logger",
    "load_config",
]
