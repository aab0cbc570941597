# authcore/infra/sql/sqlalchemy_refresh_token_store.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from authcore.models.base import as_utc
from authcore.models.refresh_token import RefreshToken
from authcore.services._shared.ports import RefreshTokenStore, RefreshTokenView
from authcore.uow import SQLAlchemyUnitOfWork


def to_view(row: RefreshToken) -> RefreshTokenView:
    """Detach an ORM row into the immutable port view (UTC-aware datetimes)."""
    return RefreshTokenView(
        id=row.id,
        token_hash=row.token_hash,
        user_id=row.user_id,
        expires_at=as_utc(row.expires_at),
        session_id=row.session_id,
        session_expires_at=as_utc(row.session_expires_at),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


@dataclass(slots=True)
class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh store.

    Each call runs in its own read-write Unit of Work, so a committed
    ``DELETE ... WHERE id = :id`` reporting one row is the consume proof the
    refresh protocol relies on. Concurrent deleters of one id are serialised
    by the database row lock: exactly one sees ``rowcount == 1``.

    :param uow_factory: Builds a fresh Unit of Work per operation.
    """

    uow_factory: Callable[[], SQLAlchemyUnitOfWork] = SQLAlchemyUnitOfWork

    def create(
        self,
        *,
        token_hash: str,
        user_id: int,
        expires_at: datetime,
        session_id: str,
        session_expires_at: datetime,
    ) -> RefreshTokenView:
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.add(
                RefreshToken(
                    token_hash=token_hash,
                    user_id=user_id,
                    expires_at=expires_at,
                    session_id=session_id,
                    session_expires_at=session_expires_at,
                )
            )
            view = to_view(row)
        return view

    def find_by_hash(self, token_hash: str) -> RefreshTokenView | None:
        with self.uow_factory() as uow:
            row = uow.refresh_tokens.get_by_hash(token_hash)
            return to_view(row) if row is not None else None

    def delete_by_id(self, token_id: int) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_by_id(token_id)

    def delete_by_hash(self, token_hash: str) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_by_hash(token_hash)

    def delete_expired(self, now: datetime) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_expired(now)

    def delete_by_user(self, user_id: int) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_by_user(user_id)

    def delete_by_session(self, session_id: str) -> int:
        with self.uow_factory() as uow:
            return uow.refresh_tokens.delete_by_session(session_id)

    def list_user_tokens(self, user_id: int) -> list[RefreshTokenView]:
        with self.uow_factory() as uow:
            return [to_view(r) for r in uow.refresh_tokens.list_for_user(user_id)]
