"""Configuration package for runtime settings, logging, and startup validation."""

from .logging import LOG_FORMAT, config_configure_logging
from .settings import AppSettings, SettingsLoadError, config_load_settings

__all__ = ["AppSettings", "SettingsLoadError", "config_load_settings", "LOG_FORMAT", "config_configure_logging"]
