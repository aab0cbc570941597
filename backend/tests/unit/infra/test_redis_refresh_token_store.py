# tests/unit/infra/test_redis_refresh_token_store.py
"""
Unit tests for RedisRefreshTokenStore using fakeredis.

These tests exercise the main flows:
- create + find_by_hash
- compare-and-delete by id (second delete reports 0)
- bulk deletes (expired, per user, per session)
- list_user_tokens cleanup of stale index entries

They use fakeredis.FakeRedis so they run entirely in-memory and integrate with pytest.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from authcore.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from authcore.services._shared.ports import DuplicateTokenHashError


def _now() -> datetime:
    """Return a timezone-aware UTC "now"."""
    return datetime.now(UTC)


def _hash(i: int) -> str:
    """Helper to build predictable token hashes for tests."""
    return f"{i:064x}"


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis):
    """Provide a RedisRefreshTokenStore backed by FakeRedis."""
    return RedisRefreshTokenStore(r=fake_redis)


def _create(store, i, *, user_id=1, session_id="s-1", expires_at=None):
    expires_at = expires_at or _now() + timedelta(days=30)
    return store.create(
        token_hash=_hash(i),
        user_id=user_id,
        expires_at=expires_at,
        session_id=session_id,
        session_expires_at=_now() + timedelta(days=60),
    )


def test_create_and_find(store):
    exp = _now() + timedelta(days=30)
    view = _create(store, 1, expires_at=exp)

    found = store.find_by_hash(_hash(1))

    assert found == view
    assert found.user_id == 1
    assert found.expires_at == exp
    assert found.expires_at.tzinfo is not None
    assert store.find_by_hash(_hash(2)) is None


def test_ids_are_unique(store):
    assert _create(store, 1).id != _create(store, 2).id


def test_duplicate_hash_rejected(store):
    first = _create(store, 1)
    with pytest.raises(DuplicateTokenHashError):
        _create(store, 1, user_id=2)

    # The losing insert leaves no record and does not steal the hash slot.
    assert store.find_by_hash(_hash(1)).id == first.id
    assert store.list_user_tokens(2) == []


def test_delete_by_id_is_compare_and_delete(store):
    view = _create(store, 1)

    assert store.delete_by_id(view.id) == 1
    assert store.delete_by_id(view.id) == 0
    assert store.find_by_hash(_hash(1)) is None
    assert store.list_user_tokens(1) == []


def test_delete_by_id_cleans_indexes(store, fake_redis):
    view = _create(store, 1)
    store.delete_by_id(view.id)

    assert not fake_redis.exists(f"rt:h:{_hash(1)}")
    assert not fake_redis.sismember("rt:u:1", view.id)
    assert not fake_redis.sismember("rt:s:s-1", view.id)
    assert fake_redis.zscore("rt:exp", str(view.id)) is None


def test_delete_by_hash(store):
    _create(store, 1)
    assert store.delete_by_hash(_hash(1)) == 1
    assert store.delete_by_hash(_hash(1)) == 0


def test_delete_expired(store):
    _create(store, 1, expires_at=_now() - timedelta(seconds=5))
    _create(store, 2, expires_at=_now() - timedelta(days=1))
    live = _create(store, 3)

    assert store.delete_expired(_now()) == 2
    assert store.delete_expired(_now()) == 0
    assert [v.id for v in store.list_user_tokens(1)] == [live.id]


def test_delete_by_user_and_session(store):
    _create(store, 1, user_id=1, session_id="a")
    _create(store, 2, user_id=1, session_id="b")
    _create(store, 3, user_id=2, session_id="c")

    assert store.delete_by_session("a") == 1
    assert store.delete_by_user(1) == 1
    assert store.delete_by_user(1) == 0
    assert len(store.list_user_tokens(2)) == 1


def test_list_user_tokens_prunes_stale_ids(store, fake_redis):
    view = _create(store, 1)
    _create(store, 2)
    fake_redis.delete(f"rt:rec:{view.id}")  # simulate a half-cleaned record

    listed = store.list_user_tokens(1)

    assert [v.token_hash for v in listed] == [_hash(2)]
    assert not fake_redis.sismember("rt:u:1", view.id)


def test_prefix_isolates_namespaces(fake_redis):
    a = RedisRefreshTokenStore(r=fake_redis, prefix="a")
    b = RedisRefreshTokenStore(r=fake_redis, prefix="b")
    _create(a, 1)

    assert b.find_by_hash(_hash(1)) is None
    assert a.find_by_hash(_hash(1)) is not None
