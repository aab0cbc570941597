# tests/unit/services/test_auth_service_sql.py
"""Refresh protocol over the relational and Redis stores."""

from __future__ import annotations

import fakeredis
import pytest
from authcore.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from authcore.infra.sql.sqlalchemy_refresh_token_store import SQLAlchemyRefreshTokenStore
from authcore.infra.sql.sqlalchemy_user_directory import SQLAlchemyUserDirectory
from authcore.services._shared.errors import ExpiredOrInvalidTokenError
from authcore.services._shared.ports import AuditSeverity
from authcore.services.auth.dto import LoginIn, LogoutIn, RefreshIn

from tests.factories.user import UserFactory
from tests.helpers.auth import DEFAULT_PASSWORD


class PreemptedSQLStore(SQLAlchemyRefreshTokenStore):
    """Let a competing caller delete ``race_target`` right before our delete."""

    race_target = None

    def delete_by_id(self, token_id):
        if token_id == self.race_target:
            self.race_target = None
            super().delete_by_id(token_id)
        return super().delete_by_id(token_id)


class PreemptedRedisStore(RedisRefreshTokenStore):
    race_target = None

    def delete_by_id(self, token_id):
        if token_id == self.race_target:
            self.race_target = None
            super().delete_by_id(token_id)
        return super().delete_by_id(token_id)


@pytest.fixture(params=["sql", "redis"])
def store(request, session):
    if request.param == "sql":
        return PreemptedSQLStore()
    return PreemptedRedisStore(r=fakeredis.FakeRedis())


@pytest.fixture()
def user(session):
    return UserFactory(email="carol@example.com")


@pytest.fixture()
def service(build_service, store):
    return build_service(store=store, users=SQLAlchemyUserDirectory())


def test_login_refresh_logout(service, store, user):
    pair1 = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD)).tokens

    pair2 = service.refresh(RefreshIn(refresh_token=pair1.refresh_token))
    with pytest.raises(ExpiredOrInvalidTokenError):
        service.refresh(RefreshIn(refresh_token=pair1.refresh_token))

    assert len(store.list_user_tokens(user.id)) == 1
    assert service.logout(LogoutIn(refresh_token=pair2.refresh_token)).user_id == user.id
    assert store.list_user_tokens(user.id) == []


def test_lost_race_leaves_no_child(service, store, audit, user):
    pair = service.login(LoginIn(email=user.email, password=DEFAULT_PASSWORD)).tokens
    [parent] = store.list_user_tokens(user.id)
    store.race_target = parent.id

    with pytest.raises(ExpiredOrInvalidTokenError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    assert store.list_user_tokens(user.id) == []
    assert audit.events(AuditSeverity.ALERT) == ["REFRESH_REUSE_DETECTED"]
