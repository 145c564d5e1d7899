"""Configuration validation for startup checks.

Validates that required configuration is present and valid before the
gateway starts accepting requests.

Usage:
    from nembus.config.validation import validate_configuration

    # During startup
    errors = validate_configuration(settings)
    if errors:
        for error in errors:
            logger.error(f"Configuration error: {error}")
        sys.exit(1)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from nembus.config.settings import Settings, get_settings
from nembus.utils.exceptions import ConfigurationError

logger = logging.getLogger("nembus.config")

KNOWN_DB_SCHEMES = ("postgres", "postgresql", "sqlite")
KNOWN_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class ValidationSeverity(str, Enum):
    """Severity of configuration validation issues."""

    ERROR = "error"  # Must be fixed, app cannot start
    WARNING = "warning"  # Should be fixed, app can start but may have issues


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""

    field: str
    severity: ValidationSeverity
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {self.field}: {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result


def validate_configuration(settings: Settings | None = None) -> list[ValidationResult]:
    """Validate gateway configuration.

    Args:
        settings: Settings to validate (default: global settings)

    Returns:
        List of validation results (empty if all checks pass)
    """
    if settings is None:
        settings = get_settings()

    results: list[ValidationResult] = []

    results.extend(_validate_master_database(settings))
    results.extend(_validate_security(settings))
    results.extend(_validate_server(settings))
    results.extend(_validate_tenant_pools(settings))

    return results


def validate_or_raise(settings: Settings | None = None) -> None:
    """Validate configuration and raise if errors found.

    Args:
        settings: Settings to validate

    Raises:
        ConfigurationError: If any validation errors are found
    """
    results = validate_configuration(settings)
    errors = [r for r in results if r.severity == ValidationSeverity.ERROR]

    if errors:
        error_messages = "\n".join(str(e) for e in errors)
        raise ConfigurationError(f"Configuration validation failed:\n{error_messages}")

    warnings = [r for r in results if r.severity == ValidationSeverity.WARNING]
    for warning in warnings:
        logger.warning(str(warning))


# =============================================================================
# Validators
# =============================================================================


def _validate_master_database(settings: Settings) -> list[ValidationResult]:
    """Validate master registry database configuration."""
    results: list[ValidationResult] = []

    try:
        url = settings.master_db_url()
    except ConfigurationError:
        results.append(
            ValidationResult(
                field="MASTER_DB_URL",
                severity=ValidationSeverity.ERROR,
                message="Master database URL is not configured",
                suggestion="Set MASTER_DB_URL environment variable",
            )
        )
        return results

    scheme = url.split(":", 1)[0].split("+", 1)[0].lower()
    if scheme not in KNOWN_DB_SCHEMES:
        results.append(
            ValidationResult(
                field="MASTER_DB_URL",
                severity=ValidationSeverity.ERROR,
                message=f"Unsupported database scheme: {scheme or '<none>'}",
                suggestion="Use a postgresql:// (or sqlite:// for local testing) URL",
            )
        )

    if settings.MASTER_POOL_SIZE < 1:
        results.append(
            ValidationResult(
                field="MASTER_POOL_SIZE",
                severity=ValidationSeverity.ERROR,
                message=f"Invalid pool size: {settings.MASTER_POOL_SIZE}",
                suggestion="Use at least one connection",
            )
        )

    return results


def _validate_security(settings: Settings) -> list[ValidationResult]:
    """Validate authentication configuration."""
    results: list[ValidationResult] = []

    secret = settings.jwt_secret()
    if secret is None:
        results.append(
            ValidationResult(
                field="JWT_SECRET",
                severity=ValidationSeverity.WARNING,
                message="JWT secret is not configured - authenticated routes will return 500",
                suggestion="Set JWT_SECRET to a long random string",
            )
        )
    elif settings.is_production and len(secret) < 32:
        results.append(
            ValidationResult(
                field="JWT_SECRET",
                severity=ValidationSeverity.WARNING,
                message="JWT secret is short and may be weak",
                suggestion="Use at least 32 characters in production",
            )
        )

    return results


def _validate_server(settings: Settings) -> list[ValidationResult]:
    """Validate HTTP server and logging configuration."""
    results: list[ValidationResult] = []

    if not (1 <= settings.PORT <= 65535):
        results.append(
            ValidationResult(
                field="PORT",
                severity=ValidationSeverity.ERROR,
                message=f"Invalid port number: {settings.PORT}",
                suggestion="Use a port between 1 and 65535",
            )
        )

    if settings.LOG_LEVEL not in KNOWN_LOG_LEVELS:
        results.append(
            ValidationResult(
                field="LOG_LEVEL",
                severity=ValidationSeverity.WARNING,
                message=f"Unknown log level: {settings.LOG_LEVEL}",
                suggestion="Use one of DEBUG, INFO, WARNING, ERROR, CRITICAL",
            )
        )
    elif settings.is_production and settings.LOG_LEVEL == "DEBUG":
        results.append(
            ValidationResult(
                field="LOG_LEVEL",
                severity=ValidationSeverity.WARNING,
                message="DEBUG log level in production may expose sensitive data",
                suggestion="Use INFO or WARNING for production",
            )
        )

    return results


def _validate_tenant_pools(settings: Settings) -> list[ValidationResult]:
    """Validate tenant connection pool bounds."""
    results: list[ValidationResult] = []

    if settings.TENANT_POOL_SIZE < 1:
        results.append(
            ValidationResult(
                field="TENANT_POOL_SIZE",
                severity=ValidationSeverity.ERROR,
                message=f"Invalid pool size: {settings.TENANT_POOL_SIZE}",
                suggestion="Use at least one connection per tenant",
            )
        )

    if settings.TENANT_POOL_MAX_OVERFLOW < 0:
        results.append(
            ValidationResult(
                field="TENANT_POOL_MAX_OVERFLOW",
                severity=ValidationSeverity.ERROR,
                message=f"Invalid max overflow: {settings.TENANT_POOL_MAX_OVERFLOW}",
                suggestion="Use zero or a positive number",
            )
        )

    if settings.TENANT_RESOLVE_TIMEOUT <= 0:
        results.append(
            ValidationResult(
                field="TENANT_RESOLVE_TIMEOUT",
                severity=ValidationSeverity.ERROR,
                message="Tenant resolve timeout must be positive",
                suggestion="A few seconds is typical",
            )
        )

    return results


def get_configuration_summary(settings: Settings | None = None) -> dict[str, Any]:
    """Get a summary of current configuration (safe for logging).

    Excludes the master URL and the JWT secret.

    Args:
        settings: Settings to summarize

    Returns:
        Dictionary with configuration summary
    """
    if settings is None:
        settings = get_settings()

    return {
        "environment": settings.environment.value,
        "log_level": settings.LOG_LEVEL,
        "host": settings.HOST,
        "port": settings.PORT,
        "master_db_configured": settings.MASTER_DB_URL is not None,
        "jwt_secret_configured": settings.jwt_secret() is not None,
        "tenant_pool_size": settings.TENANT_POOL_SIZE,
        "tenant_pool_max_overflow": settings.TENANT_POOL_MAX_OVERFLOW,
        "tenant_resolve_timeout": settings.TENANT_RESOLVE_TIMEOUT,
        "images_dir": settings.IMAGES_DIR,
    }
