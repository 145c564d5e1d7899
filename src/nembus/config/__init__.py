"""Configuration module for NEMBUS."""

from nembus.config.settings import Environment, Settings, get_settings, load_settings

__all__ = ["Environment", "Settings", "get_settings", "load_settings"]
