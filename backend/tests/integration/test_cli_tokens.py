"""Tests for the ``flask tokens`` maintenance commands."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from tests.factories.user import RefreshTokenFactory, UserFactory


@pytest.fixture()
def runner(app):
    return app.test_cli_runner()


def test_reap_deletes_expired(runner, session):
    user = UserFactory()
    RefreshTokenFactory(user_id=user.id, expires_at=datetime.now(UTC) - timedelta(days=1))
    RefreshTokenFactory(user_id=user.id)
    session.commit()

    result = runner.invoke(args=["tokens", "reap"])

    assert result.exit_code == 0, result.output
    assert "Deleted 1 expired refresh token(s)." in result.output


def test_list_and_revoke_user(runner, session):
    user = UserFactory()
    RefreshTokenFactory(user_id=user.id, session_id="cli-session")
    session.commit()

    listed = runner.invoke(args=["tokens", "list", str(user.id)])
    assert listed.exit_code == 0, listed.output
    assert "session=cli-session" in listed.output

    revoked = runner.invoke(args=["tokens", "revoke-user", str(user.id)])
    assert revoked.exit_code == 0, revoked.output
    assert f"Revoked 1 refresh token(s) for user {user.id}." in revoked.output

    empty = runner.invoke(args=["tokens", "list", str(user.id)])
    assert "(none)" in empty.output
