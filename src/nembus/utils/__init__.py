"""Utility modules for NEMBUS."""

from nembus.utils.exceptions import ConfigurationError, NembusError

__all__ = [
    "NembusError",
    "ConfigurationError",
]
