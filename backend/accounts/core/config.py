"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

from accounts.services.tokens.settings import TokenSettings

ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Load .env in development (no-op when the file is absent)
load_dotenv()


class ConfigurationError(RuntimeError):
    """Raised when required settings are missing or invalid at startup."""


_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def env_bool(name: str, default: bool = False) -> bool:
    """Read a flag such as ``REFRESH_REUSE_REVOKES_ALL=true``; unset means ``default``."""
    raw = os.getenv(name)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        return int(val)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {val!r}") from exc


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str | None
        Symmetric key signing access tokens. Required; the factory refuses to
        start without it.
    JWT_ISSUER: str
        ``iss`` claim written into and demanded from access tokens.
    JWT_AUDIENCE: str
        ``aud`` claim written into and demanded from access tokens.
    JWT_ALGORITHM: str
        HMAC algorithm used to sign access tokens.
    ACCESS_TOKEN_TTL_MINUTES: int
        Access token lifetime (short, 15 minutes by default).
    REFRESH_TOKEN_TTL_DAYS: int
        Refresh token lifetime (7 days by default).
    BCRYPT_ROUNDS: int
        bcrypt cost factor (``2**rounds`` iterations).
    REFRESH_TOKEN_STORE: str
        Backend holding refresh tokens: ``"sql"``, ``"redis"`` or ``"memory"``.
    REFRESH_REUSE_REVOKES_ALL: bool
        Revoke every active refresh token of a user when one of their revoked
        tokens is replayed.
    REDIS_URL: str | None
        Connection URL for the Redis refresh store.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "accounts-api")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "accounts-clients")
    JWT_ALGORITHM = "HS256"
    ACCESS_TOKEN_TTL_MINUTES = env_int("ACCESS_TOKEN_TTL_MINUTES", 15)
    REFRESH_TOKEN_TTL_DAYS = env_int("REFRESH_TOKEN_TTL_DAYS", 7)
    BCRYPT_ROUNDS = env_int("BCRYPT_ROUNDS", 12)

    # Refresh token storage
    REFRESH_TOKEN_STORE = os.getenv("REFRESH_TOKEN_STORE", "sql")
    REFRESH_REUSE_REVOKES_ALL = env_bool("REFRESH_REUSE_REVOKES_ALL", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local development: debug on, secrets still from the environment or ``.env``."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Ships a fixed signing secret and a cheap bcrypt cost.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    JWT_SECRET_KEY = "testing-signing-secret-with-at-least-32-bytes"
    BCRYPT_ROUNDS = 4
    REFRESH_TOKEN_STORE = "sql"
    PROPAGATE_EXCEPTIONS = True


class ProductionConfig(BaseConfig):
    """Production: no debug, no SQL echo, exceptions rendered as problems."""

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Pick the config class named by ``APP_ENV`` (development when unset or unknown)."""
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def token_settings_from_config(config: Mapping[str, Any]) -> TokenSettings:
    """Build the explicit token configuration from a Flask config mapping.

    Parameters
    ----------
    config: Mapping[str, Any]
        Usually ``app.config``.

    Returns
    -------
    TokenSettings
        Frozen settings handed to the codec, issuer and validator.

    Raises
    ------
    ConfigurationError
        If the signing secret is missing or blank, or a lifetime is not
        positive.
    """
    secret = config.get("JWT_SECRET_KEY")
    if not secret or not str(secret).strip():
        raise ConfigurationError("JWT_SECRET_KEY is not configured.")

    access_minutes = int(config.get("ACCESS_TOKEN_TTL_MINUTES", 15))
    refresh_days = int(config.get("REFRESH_TOKEN_TTL_DAYS", 7))
    if access_minutes <= 0:
        raise ConfigurationError("ACCESS_TOKEN_TTL_MINUTES must be positive.")
    if refresh_days <= 0:
        raise ConfigurationError("REFRESH_TOKEN_TTL_DAYS must be positive.")

    return TokenSettings(
        signing_key=str(secret),
        issuer=str(config.get("JWT_ISSUER", "accounts-api")),
        audience=str(config.get("JWT_AUDIENCE", "accounts-clients")),
        algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
        access_ttl=timedelta(minutes=access_minutes),
        refresh_ttl=timedelta(days=refresh_days),
    )
