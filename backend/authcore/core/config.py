"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'


# Load .env in development (no-op when the file is absent)
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
        Flask secret used for session signing. Defaults to a development-safe
        placeholder and should be overridden in production.
    JWT_ACCESS_SECRET: str
        Key signing access credentials. Mirrored into ``JWT_SECRET_KEY`` so
        ``flask-jwt-extended`` can verify bearer tokens on protected routes.
    JWT_REFRESH_SECRET: str
        Key signing refresh credentials and keying the refresh-hash HMAC.
    JWT_ALGORITHM: str
        Signing algorithm for both credential types (``HS256``).
    JWT_ISSUER / JWT_AUDIENCE: str | None
        Optional ``iss``/``aud`` claims enforced on issue and verify.
    ACCESS_TOKEN_TTL_MINUTES: int
        Access credential lifetime.
    REFRESH_TOKEN_TTL_DAYS: int
        Persisted refresh record lifetime (30 days).
    SESSION_MAX_AGE_DAYS: int
        Absolute session hard cap carried across rotations (60 days).
    REFRESH_STORE_BACKEND: str
        ``"sql"`` (default), ``"redis"`` or ``"memory"``.
    REDIS_URL: str | None
        Connection URL used when the Redis backend is selected.
    REAPER_ASYNC: bool
        Run opportunistic expiry sweeps on a background executor. When off,
        every login and refresh sweeps inline before returning. Production
        turns it on by default.
    REAPER_INTERVAL_SECONDS: int
        Period of the background sweeper; ``0`` disables it.
    AUTH_REQUIRE_VERIFIED_EMAIL: bool
        Reject logins for accounts without ``email_verified_at``.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter expression applied to the login endpoint.
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
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", "CHANGE_ME_ACCESS")
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", "CHANGE_ME_REFRESH")
    JWT_SECRET_KEY = JWT_ACCESS_SECRET
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER") or None
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE") or None
    JWT_TOKEN_LOCATION = ["headers"]

    # Credential lifetimes
    ACCESS_TOKEN_TTL_MINUTES = env_int("ACCESS_TOKEN_TTL_MINUTES", 15)
    REFRESH_TOKEN_TTL_DAYS = env_int("REFRESH_TOKEN_TTL_DAYS", 30)
    SESSION_MAX_AGE_DAYS = env_int("SESSION_MAX_AGE_DAYS", 60)

    # Refresh store & housekeeping
    REFRESH_STORE_BACKEND = os.getenv("REFRESH_STORE_BACKEND", "sql").strip().lower()
    REDIS_URL = os.getenv("REDIS_URL") or None
    REAPER_ASYNC = env_bool("REAPER_ASYNC", False)
    REAPER_INTERVAL_SECONDS = env_int("REAPER_INTERVAL_SECONDS", 0)

    # Login policy
    AUTH_REQUIRE_VERIFIED_EMAIL = env_bool("AUTH_REQUIRE_VERIFIED_EMAIL", False)
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    REFRESH_COOKIE_NAME = "refresh_token"
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", True)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging, CORS & proxies
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = 600
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    PROXYFIX_HOPS = env_int("PROXYFIX_HOPS", 1)

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and relaxes the secure-cookie flag so the
    refresh cookie works over plain HTTP on localhost.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    REFRESH_COOKIE_SECURE = env_bool("REFRESH_COOKIE_SECURE", False)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Propagates exceptions so pytest can surface tracebacks directly.
    - Disables rate limiting and the background sweeper.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    PROPAGATE_EXCEPTIONS = True
    JWT_ACCESS_SECRET = "test-access-secret-with-enough-entropy"
    JWT_REFRESH_SECRET = "test-refresh-secret-with-enough-entropy"
    JWT_SECRET_KEY = JWT_ACCESS_SECRET
    REFRESH_STORE_BACKEND = "sql"
    REAPER_ASYNC = False
    REAPER_INTERVAL_SECONDS = 0
    RATELIMIT_ENABLED = False
    REFRESH_COOKIE_SECURE = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled while relying on WSGI-level log
    configuration for noise control. Expiry sweeps run off the request path.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REAPER_ASYNC = env_bool("REAPER_ASYNC", True)


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
