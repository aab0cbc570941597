"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    LoginResponseSchema,
    LoginSchema,
    LogoutResponseSchema,
    RefreshTokenSchema,
    TokenPairSchema,
    UserPublicSchema,
    WhoAmISchema,
)

__all__ = [
    "LoginResponseSchema",
    "LoginSchema",
    "LogoutResponseSchema",
    "RefreshTokenSchema",
    "TokenPairSchema",
    "UserPublicSchema",
    "WhoAmISchema",
]
