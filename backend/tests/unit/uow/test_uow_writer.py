"""
Unit tests for SQLAlchemyUnitOfWork (writer), using factories.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest
from authcore.models import RefreshToken
from authcore.uow import SQLAlchemyUnitOfWork

from tests.factories.user import UserFactory


def _token(user_id: int, token_hash: str) -> RefreshToken:
    now = datetime.now(UTC)
    return RefreshToken(
        token_hash=token_hash,
        user_id=user_id,
        expires_at=now + timedelta(days=30),
        session_id="s-1",
        session_expires_at=now + timedelta(days=60),
    )


class TestSQLAlchemyUnitOfWorkWriter:
    def test_writer_uow_commits_on_success(self, db, session):
        """
        GIVEN a writer UoW
        WHEN we add a refresh record inside the context and leave without exception
        THEN the transaction is committed and the row is visible afterwards.
        """
        user = UserFactory()
        initial = db.session.query(RefreshToken).count()

        with SQLAlchemyUnitOfWork() as uow:
            uow.refresh_tokens.add(_token(user.id, "a" * 64))

        assert db.session.query(RefreshToken).count() == initial + 1

    def test_writer_uow_rolls_back_on_exception(self, db, session):
        """
        GIVEN a writer UoW
        WHEN an exception is raised inside the context
        THEN the transaction is rolled back and no rows are persisted.
        """
        user_id = UserFactory().id
        with SQLAlchemyUnitOfWork():
            pass  # commit the factory user on its own
        initial = db.session.query(RefreshToken).count()

        with pytest.raises(RuntimeError), SQLAlchemyUnitOfWork() as uow:
            uow.refresh_tokens.add(_token(user_id, "b" * 64))
            raise RuntimeError("boom")

        assert db.session.query(RefreshToken).count() == initial

    def test_delete_count_is_durable(self, db, session):
        """A delete that reported one row is committed when the UoW exits."""
        user = UserFactory()
        with SQLAlchemyUnitOfWork() as uow:
            row_id = uow.refresh_tokens.add(_token(user.id, "c" * 64)).id

        with SQLAlchemyUnitOfWork() as uow:
            assert uow.refresh_tokens.delete_by_id(row_id) == 1

        with SQLAlchemyUnitOfWork() as uow:
            assert uow.refresh_tokens.get(row_id) is None
            assert uow.refresh_tokens.delete_by_id(row_id) == 0
