"""Refresh-credential repository."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import select

from authcore.models.refresh_token import RefreshToken
from authcore.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken`.

    Every delete returns the number of rows the statement removed. A second
    caller deleting the same id gets ``0``, never an exception.
    """

    model = RefreshToken

    def _sortable_fields(self):
        return {
            "id": RefreshToken.id,
            "expires_at": RefreshToken.expires_at,
            "created_at": RefreshToken.created_at,
        }

    def _filterable_fields(self):
        return {
            "user_id": RefreshToken.user_id,
            "session_id": RefreshToken.session_id,
            "token_hash": RefreshToken.token_hash,
        }

    # ---------------------------- Lookup ----------------------------

    def get_by_hash(self, token_hash: str) -> RefreshToken | None:
        stmt = select(RefreshToken).where(RefreshToken.token_hash == token_hash)
        return cast(RefreshToken | None, self.session.execute(stmt).scalars().first())

    def list_for_user(self, user_id: int) -> list[RefreshToken]:
        return self.list(filters={"user_id": user_id})

    # ---------------------------- Deletes ---------------------------

    def delete_by_id(self, token_id: int) -> int:
        return self.delete_where(RefreshToken.id == token_id)

    def delete_by_hash(self, token_hash: str) -> int:
        return self.delete_where(RefreshToken.token_hash == token_hash)

    def delete_expired(self, now: datetime) -> int:
        return self.delete_where(RefreshToken.expires_at <= now)

    def delete_by_user(self, user_id: int) -> int:
        return self.delete_where(RefreshToken.user_id == user_id)

    def delete_by_session(self, session_id: str) -> int:
        return self.delete_where(RefreshToken.session_id == session_id)
