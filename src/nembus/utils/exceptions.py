"""Custom exceptions for NEMBUS."""


class NembusError(Exception):
    """Base exception for all NEMBUS errors."""

    pass


class ConfigurationError(NembusError):
    """Error in configuration or settings."""

    pass
