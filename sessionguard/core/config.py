"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Loads .env in development (no-op when missing)
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


def env_float(name: str, default: float) -> float:
    """Parse a float from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return float(val)


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret. Unrelated to token signing.
    JWT_SECRET_KEY: str
        HMAC secret used to sign access and refresh tokens.
    JWT_ACCESS_TTL_SECONDS: int
        Access token lifetime in whole seconds.
    JWT_REFRESH_TTL_SECONDS: int
        Refresh token lifetime in whole seconds. Must exceed the access TTL.
    JWT_ROTATE_REFRESH: bool
        When ``True`` every refresh also replaces the refresh token.
    JWT_ACCESS_COOKIE_NAME / JWT_REFRESH_COOKIE_NAME: str
        Cookie names used for browser clients.
    REDIS_URL: str | None
        Session registry location. Required unless ``DEBUG`` or ``TESTING``
        is set, in which case an in-process registry is used.
    REDIS_SOCKET_TIMEOUT / REDIS_CONNECT_TIMEOUT: float
        Per-call and connect timeouts (seconds) for registry calls.
    REDIS_RETRY_ATTEMPTS: int
        Bounded number of retries with exponential backoff.
    REGISTRY_FAIL_OPEN: bool
        Accept cryptographically valid tokens while the registry is down.
        Defaults to ``False`` (fail-closed).
    SQLALCHEMY_DATABASE_URI: str
        User store connection string.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter expression applied to login and sign-up.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes. Token settings are
    frozen into a dataclass once, when :func:`sessionguard.factory.create_app` runs.
    """

    API_BASE_PREFIX = "/api"

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT_SECRET_AT_LEAST_32_BYTES")
    JWT_ALGORITHM = "HS256"
    JWT_ACCESS_TTL_SECONDS = env_int("JWT_ACCESS_TTL_SECONDS", 86400)
    JWT_REFRESH_TTL_SECONDS = env_int("JWT_REFRESH_TTL_SECONDS", 1209600)
    JWT_ROTATE_REFRESH = env_bool("JWT_ROTATE_REFRESH", False)

    # Cookie transport (browser clients)
    JWT_ACCESS_COOKIE_NAME = "jwt"
    JWT_REFRESH_COOKIE_NAME = "refresh_token"
    JWT_ACCESS_COOKIE_PATH = "/"
    JWT_REFRESH_COOKIE_PATH = "/api"
    JWT_COOKIE_SECURE = env_bool("JWT_COOKIE_SECURE", True)
    JWT_COOKIE_SAMESITE = os.getenv("JWT_COOKIE_SAMESITE", "Lax")

    # Session registry
    REDIS_URL = os.getenv("REDIS_URL")
    REDIS_SOCKET_TIMEOUT = env_float("REDIS_SOCKET_TIMEOUT", 0.5)
    REDIS_CONNECT_TIMEOUT = env_float("REDIS_CONNECT_TIMEOUT", 0.5)
    REDIS_RETRY_ATTEMPTS = env_int("REDIS_RETRY_ATTEMPTS", 2)
    REDIS_RETRY_BACKOFF_BASE = env_float("REDIS_RETRY_BACKOFF_BASE", 0.02)
    REDIS_RETRY_BACKOFF_CAP = env_float("REDIS_RETRY_BACKOFF_CAP", 0.2)
    SESSION_KEY_PREFIX = os.getenv("SESSION_KEY_PREFIX", "sess")
    REGISTRY_FAIL_OPEN = env_bool("REGISTRY_FAIL_OPEN", False)

    # User store
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:3000")
    CORS_MAX_AGE = 3600

    # Rate limiting (Flask-Limiter) on credential endpoints
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_HEADERS_ENABLED = True
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and allows cookies over plain HTTP.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    JWT_COOKIE_SECURE = env_bool("JWT_COOKIE_SECURE", False)
    USE_PROXYFIX = False


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis; the in-process registry is used instead.
    """

    TESTING = True
    RATELIMIT_ENABLED = False
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-secret-key-with-enough-entropy-0123456789"
    JWT_COOKIE_SECURE = False
    REDIS_URL = None
    PROPAGATE_EXCEPTIONS = True
    LOG_LEVEL = "WARNING"


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug disabled and always marks cookies ``Secure``.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    JWT_COOKIE_SECURE = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
