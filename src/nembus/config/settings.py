"""Application settings loaded from the environment and dotenv files.

Each field resolves, in order, from the process environment, the
environment-specific dotenv file (``.env.dev``, ``.env.stg``), the fallback
``.env`` file and finally the built-in default.
"""

import os
from enum import Enum
from functools import lru_cache

from pydantic import SecretStr, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from nembus.utils.exceptions import ConfigurationError

DEFAULT_ENV = "development"
FALLBACK_ENV_FILE = ".env"


class Environment(str, Enum):
    """Normalized deployment environments."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"


_ENV_ALIASES: dict[str, Environment] = {
    "dev": Environment.DEVELOPMENT,
    "development": Environment.DEVELOPMENT,
    "stg": Environment.STAGING,
    "staging": Environment.STAGING,
    "prod": Environment.PRODUCTION,
    "production": Environment.PRODUCTION,
}

_ENV_FILES: dict[Environment, str] = {
    Environment.DEVELOPMENT: ".env.dev",
    Environment.STAGING: ".env.stg",
}


def normalize_environment(value: str | None) -> Environment:
    """Map an ENV value (dev, stg, prod and their long forms) to an Environment.

    Unknown values are treated as production, the release-mode default.
    """
    if not value:
        return Environment.DEVELOPMENT
    return _ENV_ALIASES.get(value.strip().lower(), Environment.PRODUCTION)


def env_files_for(env: str | None) -> tuple[str, ...]:
    """Return dotenv files for an environment, lowest priority first."""
    specific = _ENV_FILES.get(normalize_environment(env))
    if specific is None:
        return (FALLBACK_ENV_FILE,)
    return (FALLBACK_ENV_FILE, specific)


class Settings(BaseSettings):
    """Gateway settings."""

    model_config = SettingsConfigDict(
        env_file=FALLBACK_ENV_FILE,
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Environment
    ENV: str = DEFAULT_ENV
    HOST: str = "0.0.0.0"
    PORT: int = 8080
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool | None = None

    # Master registry database
    MASTER_DB_URL: SecretStr | None = None
    MASTER_POOL_SIZE: int = 5

    # Authentication
    JWT_SECRET: SecretStr | None = None
    DEV_USER_ID: str = "00000000-0000-0000-0000-000000000000"
    DEV_USER_LOGIN: str = "dev_user"

    # Tenant connection pools
    TENANT_POOL_SIZE: int = 5
    TENANT_POOL_MAX_OVERFLOW: int = 5
    TENANT_POOL_TIMEOUT: float = 30.0
    TENANT_RESOLVE_TIMEOUT: float = 10.0

    # Static files
    IMAGES_DIR: str = "./uploads/images"

    @field_validator("LOG_LEVEL")
    @classmethod
    def _upper_log_level(cls, value: str) -> str:
        return value.strip().upper()

    @property
    def environment(self) -> Environment:
        """The normalized environment."""
        return normalize_environment(self.ENV)

    @property
    def is_development(self) -> bool:
        """Debug mode: verbose logging and dev-only endpoints."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_production(self) -> bool:
        """Release mode."""
        return self.environment == Environment.PRODUCTION

    @property
    def json_logs(self) -> bool:
        """Whether logs render as JSON (default: outside development)."""
        if self.LOG_JSON is not None:
            return self.LOG_JSON
        return not self.is_development

    def master_db_url(self) -> str:
        """Return the master database URL.

        Raises:
            ConfigurationError: If MASTER_DB_URL is not set
        """
        if self.MASTER_DB_URL is None or not self.MASTER_DB_URL.get_secret_value().strip():
            raise ConfigurationError("MASTER_DB_URL is not set")
        return self.MASTER_DB_URL.get_secret_value().strip()

    def jwt_secret(self) -> str | None:
        """Return the JWT secret, or None when it is unset or empty."""
        if self.JWT_SECRET is None:
            return None
        return self.JWT_SECRET.get_secret_value() or None


def load_settings(env: str | None = None) -> Settings:
    """Load settings for an environment.

    Args:
        env: Environment selected on the command line. When omitted, the
            ENV process variable is used, defaulting to development.

    Returns:
        Settings resolved from process environment, the environment-specific
        dotenv file, the fallback .env file and defaults

    Raises:
        ConfigurationError: If a setting has an invalid value
    """
    selected = env or os.environ.get("ENV") or DEFAULT_ENV
    overrides = {"ENV": env} if env else {}
    try:
        return Settings(_env_file=env_files_for(selected), **overrides)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e.error_count()} error(s)") from e


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return load_settings()
