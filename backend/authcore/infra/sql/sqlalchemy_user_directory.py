# authcore/infra/sql/sqlalchemy_user_directory.py
from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from authcore.models.base import as_utc
from authcore.models.user import User
from authcore.services._shared.ports import UserCredentials, UserDirectory
from authcore.uow import SQLAlchemyReadOnlyUnitOfWork


def to_credentials(user: User) -> UserCredentials:
    return UserCredentials(
        id=user.id,
        email=user.email,
        active=bool(user.active),
        password_hash=user.password_hash,
        username=user.username,
        email_verified_at=as_utc(user.email_verified_at) if user.email_verified_at else None,
    )


@dataclass(slots=True)
class SQLAlchemyUserDirectory(UserDirectory):
    """Read-only user lookups through :class:`SQLAlchemyReadOnlyUnitOfWork`."""

    uow_factory: Callable[[], SQLAlchemyReadOnlyUnitOfWork] = SQLAlchemyReadOnlyUnitOfWork

    def get_by_id(self, user_id: int) -> UserCredentials | None:
        with self.uow_factory() as uow:
            user = uow.users.get(user_id)
            return to_credentials(user) if user is not None else None

    def get_by_email(self, email: str) -> UserCredentials | None:
        with self.uow_factory() as uow:
            user = uow.users.get_by_email(email)
            return to_credentials(user) if user is not None else None
