"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import or depend on
Flask or HTTP. They are the stable contract between the auth service and its
callers; the translation to HTTP responses (RFC 7807) is handled by
``BaseService.translate_exceptions()``.

Messages are deliberately fixed: a caller can never tell an unknown email
from a wrong password or an inactive account, nor an expired refresh token
from a replayed one.
"""

from __future__ import annotations

# --------------------------------------------------------------------------- #
# Base type
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` via ``BaseService``.
    """

    default_message = "Service error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)


# --------------------------------------------------------------------------- #
# Credential errors
# --------------------------------------------------------------------------- #


class InvalidCredentialsError(ServiceError):
    """Bad email/password or inactive account at login."""

    default_message = "Invalid credentials"


class ExpiredOrInvalidTokenError(ServiceError):
    """
    Any refresh failure: unknown hash, expired record, bad signature,
    inactive owner, or a lost rotation race.
    """

    default_message = "Refresh token is expired or invalid"


class TokenNotFoundError(ServiceError):
    """Logout with a refresh token that resolves to no live record."""

    default_message = "Token not found"


class AuthInternalError(ServiceError):
    """Storage or signing fault unrelated to credential validity."""

    default_message = "Internal authentication error"
