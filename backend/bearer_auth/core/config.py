"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# Placeholder secrets; production refuses to start with any of them.
DEFAULT_SECRET: Final[str] = "CHANGE_ME"
DEFAULT_ACCESS_SECRET: Final[str] = "CHANGE_ME_ACCESS"
DEFAULT_REFRESH_SECRET: Final[str] = "CHANGE_ME_REFRESH"

# Load .env in development (no-op when absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_ISSUER: str
        ``iss`` claim written into and required from every token.
    JWT_ALGORITHM: str
        JWS algorithm used to sign tokens (HMAC family).
    JWT_ACCESS_SECRET / JWT_REFRESH_SECRET: str
        Per-purpose signing secrets.
    JWT_ACCESS_TTL_SECONDS / JWT_REFRESH_TTL_SECONDS: int
        Per-purpose lifetimes.
    AUTH_TOKEN_MODE: str
        ``single`` (access tokens only) or ``dual`` (access + refresh).
    TOKEN_STORE_BACKEND: str
        ``sql`` (default) or ``redis`` for token records.
    TOKEN_ISSUE_RETRIES: int
        Attempts for the revoke-then-insert transaction under contention.
    NEW_TOKEN_HEADER: str
        Response header carrying a transparently reissued token.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    REDIS_URL: str | None
        Connection string for the Redis token store.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", DEFAULT_SECRET)

    # Tokens
    JWT_ISSUER = os.getenv("JWT_ISSUER", "bearer-auth")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEFAULT_ACCESS_SECRET)
    JWT_ACCESS_TTL_SECONDS = env_int("JWT_ACCESS_TTL_SECONDS", 300)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEFAULT_REFRESH_SECRET)
    JWT_REFRESH_TTL_SECONDS = env_int("JWT_REFRESH_TTL_SECONDS", 1_209_600)
    AUTH_TOKEN_MODE = os.getenv("AUTH_TOKEN_MODE", "single")
    TOKEN_STORE_BACKEND = os.getenv("TOKEN_STORE_BACKEND", "sql")
    TOKEN_ISSUE_RETRIES = env_int("TOKEN_ISSUE_RETRIES", 3)
    NEW_TOKEN_HEADER = os.getenv("NEW_TOKEN_HEADER", "X-New-Token")

    # DB / cache
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REDIS_URL = os.getenv("REDIS_URL")

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Uses fixed secrets and the SQL token store so runs are reproducible.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_ISSUER = "bearer-auth-test"
    JWT_ACCESS_SECRET = "test-access-secret-0123456789abcdef"
    JWT_REFRESH_SECRET = "test-refresh-secret-0123456789abcdef"
    AUTH_TOKEN_MODE = "single"
    TOKEN_STORE_BACKEND = "sql"
    REDIS_URL = None
    LOG_LEVEL = "WARNING"
    PROPAGATE_EXCEPTIONS = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled. :func:`ensure_production_secrets`
    rejects the placeholder secrets at startup.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def ensure_production_secrets(config: Mapping[str, Any]) -> None:
    """Refuse to run a non-debug, non-testing app with placeholder secrets.

    :param config: Loaded Flask configuration.
    :raises RuntimeError: When a placeholder secret is still configured.
    """
    if config.get("DEBUG") or config.get("TESTING"):
        return
    placeholders = {
        "SECRET_KEY": DEFAULT_SECRET,
        "JWT_ACCESS_SECRET": DEFAULT_ACCESS_SECRET,
    }
    if str(config.get("AUTH_TOKEN_MODE", "single")).lower() == "dual":
        placeholders["JWT_REFRESH_SECRET"] = DEFAULT_REFRESH_SECRET
    offending = [key for key, value in placeholders.items() if config.get(key) == value]
    if offending:
        raise RuntimeError(f"Refusing to start with default secrets: {', '.join(offending)}")
