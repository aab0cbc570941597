# authcore/services/auth/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from authcore.services._shared.ports import UserCredentials

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email (normalized by the service).
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Raw refresh secret as issued to the client.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Raw refresh secret to invalidate.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Raw refresh secret (its hash is what gets stored).
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


@dataclass(frozen=True, slots=True)
class LoginOut:
    """
    Output DTO of a successful login.

    :param tokens: Freshly issued credential pair.
    :param user: Authenticated user view (no password hash exposure intended).
    """

    tokens: TokenPairOut
    user: UserCredentials

    @property
    def access_token(self) -> str:
        return self.tokens.access_token

    @property
    def refresh_token(self) -> str:
        return self.tokens.refresh_token


@dataclass(frozen=True, slots=True)
class LogoutOut:
    """Output DTO of a successful logout: the owner of the removed record."""

    user_id: int


@dataclass(frozen=True, slots=True)
class ReapOut:
    """Output DTO of an expiry sweep."""

    deleted: int


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Credential emission configuration (signing material and lifetimes).

    :param access_secret: HMAC key for access credentials.
    :param refresh_secret: HMAC key for refresh credentials and refresh hashes.
    :param algorithm: JWT algorithm (``HS256``).
    :param issuer: Optional ``iss`` claim.
    :param audience: Optional ``aud`` claim.
    :param access_expires: Access token lifetime.
    :param refresh_expires: Persisted refresh record lifetime.
    :param session_max_age: Absolute session hard cap across rotations.
    :param require_verified_email: Reject logins without a confirmed email.
    """

    access_secret: str
    refresh_secret: str
    algorithm: str = "HS256"
    issuer: str | None = None
    audience: str | None = None
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=30)
    session_max_age: timedelta = timedelta(days=60)
    require_verified_email: bool = False

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise ValueError("JWT access and refresh secrets must both be configured.")
        if self.access_secret == self.refresh_secret:
            raise ValueError("Access and refresh secrets must differ.")

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> AuthTokenConfig:
        """Build the config from a Flask-style mapping (``app.config``)."""
        return cls(
            access_secret=str(config.get("JWT_ACCESS_SECRET") or ""),
            refresh_secret=str(config.get("JWT_REFRESH_SECRET") or ""),
            algorithm=str(config.get("JWT_ALGORITHM", "HS256")),
            issuer=config.get("JWT_ISSUER") or None,
            audience=config.get("JWT_AUDIENCE") or None,
            access_expires=timedelta(minutes=int(config.get("ACCESS_TOKEN_TTL_MINUTES", 15))),
            refresh_expires=timedelta(days=int(config.get("REFRESH_TOKEN_TTL_DAYS", 30))),
            session_max_age=timedelta(days=int(config.get("SESSION_MAX_AGE_DAYS", 60))),
            require_verified_email=bool(config.get("AUTH_REQUIRE_VERIFIED_EMAIL", False)),
        )
