"""Repository package exposing persistence-layer access for the auth models."""

from __future__ import annotations

from authcore.repositories.base import BaseRepository, apply_sorting, parse_sort_tokens
from authcore.repositories.refresh_token import RefreshTokenRepository
from authcore.repositories.user import UserRepository

__all__ = [
    # Base
    "BaseRepository",
    "apply_sorting",
    "parse_sort_tokens",
    # Domain
    "RefreshTokenRepository",
    "UserRepository",
]
