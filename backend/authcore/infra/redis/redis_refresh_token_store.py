# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any, cast

import redis  # type: ignore[import-untyped]
from authcore.services._shared.ports import (
    DuplicateTokenHashError,
    RefreshTokenStore,
    RefreshTokenView,
)


def _s(value: Any) -> str:
    return value.decode() if isinstance(value, bytes | bytearray) else str(value)


def _ts(dt: datetime) -> float:
    # Naive datetimes are labelled UTC, never converted
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.timestamp()


def _iso(dt: datetime) -> str:
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC).isoformat()


def _dt(raw: Any) -> datetime:
    return datetime.fromisoformat(_s(raw))


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh store.

    Layout (``prefix`` defaults to ``rt``)::

        rt:seq               INCR counter for surrogate ids
        rt:rec:{id}          HASH with the record fields
        rt:h:{token_hash}    STRING -> id   (unique index, SET NX)
        rt:u:{user_id}       SET of ids
        rt:s:{session_id}    SET of ids
        rt:exp               ZSET id scored by expires_at

    The compare-and-delete is ``MULTI; HGETALL rec; DEL rec; EXEC``: Redis
    runs the block atomically, so of N concurrent deleters of one id exactly
    one sees ``DEL == 1`` together with the fields it needs to clean the
    secondary indexes. Index entries pointing at a vanished record are
    treated as absent and pruned lazily.

    Records carry no Redis TTL; expiry is enforced by ``expires_at`` checks
    and the reaper, like every other backend.

    :param r: A Redis client (already connected).
    :param prefix: Key namespace.
    """

    r: redis.Redis
    prefix: str = "rt"

    # -------------------- keys -----------------------

    def _k_seq(self) -> str:
        return f"{self.prefix}:seq"

    def _k_rec(self, token_id: int) -> str:
        return f"{self.prefix}:rec:{token_id}"

    def _k_hash(self, token_hash: str) -> str:
        return f"{self.prefix}:h:{token_hash}"

    def _k_user(self, user_id: int) -> str:
        return f"{self.prefix}:u:{user_id}"

    def _k_session(self, session_id: str) -> str:
        return f"{self.prefix}:s:{session_id}"

    def _k_exp(self) -> str:
        return f"{self.prefix}:exp"

    # -------------------- helpers --------------------

    @staticmethod
    def _view(token_id: int, h: dict[Any, Any]) -> RefreshTokenView:
        data = {_s(k): v for k, v in h.items()}
        created = _dt(data["created_at"])
        return RefreshTokenView(
            id=token_id,
            token_hash=_s(data["token_hash"]),
            user_id=int(_s(data["user_id"])),
            expires_at=_dt(data["expires_at"]),
            session_id=_s(data["session_id"]),
            session_expires_at=_dt(data["session_expires_at"]),
            created_at=created,
            updated_at=created,
        )

    def _load(self, token_id: int) -> RefreshTokenView | None:
        h = self.r.hgetall(self._k_rec(token_id))
        return self._view(token_id, h) if h else None

    def _ids(self, key: str) -> list[int]:
        return sorted(int(_s(m)) for m in self.r.smembers(key))

    # -------------------- API ------------------------

    def create(
        self,
        *,
        token_hash: str,
        user_id: int,
        expires_at: datetime,
        session_id: str,
        session_expires_at: datetime,
    ) -> RefreshTokenView:
        token_id = int(self.r.incr(self._k_seq()))
        # Claim the unique hash slot first; a duplicate never gets a record.
        if not self.r.set(self._k_hash(token_hash), token_id, nx=True):
            raise DuplicateTokenHashError("token_hash already stored")

        now = datetime.now(UTC)
        mapping = {
            "token_hash": token_hash,
            "user_id": str(user_id),
            "expires_at": _iso(expires_at),
            "session_id": session_id,
            "session_expires_at": _iso(session_expires_at),
            "created_at": _iso(now),
        }
        pipe = self.r.pipeline(transaction=True)
        pipe.hset(self._k_rec(token_id), mapping=mapping)
        pipe.sadd(self._k_user(user_id), token_id)
        pipe.sadd(self._k_session(session_id), token_id)
        pipe.zadd(self._k_exp(), {str(token_id): _ts(expires_at)})
        pipe.execute()

        return self._view(token_id, mapping)

    def find_by_hash(self, token_hash: str) -> RefreshTokenView | None:
        raw_id = self.r.get(self._k_hash(token_hash))
        if raw_id is None:
            return None
        view = self._load(int(_s(raw_id)))
        if view is None or view.token_hash != token_hash:
            return None
        return view

    def delete_by_id(self, token_id: int) -> int:
        pipe = self.r.pipeline(transaction=True)
        pipe.hgetall(self._k_rec(token_id))
        pipe.delete(self._k_rec(token_id))
        h, deleted = cast(list[Any], pipe.execute())
        if int(deleted) != 1:
            return 0

        # Winner cleans up the secondary indexes.
        view = self._view(token_id, h)
        cleanup = self.r.pipeline(transaction=False)
        cleanup.delete(self._k_hash(view.token_hash))
        cleanup.srem(self._k_user(view.user_id), token_id)
        cleanup.srem(self._k_session(view.session_id), token_id)
        cleanup.zrem(self._k_exp(), str(token_id))
        cleanup.execute()
        return 1

    def delete_by_hash(self, token_hash: str) -> int:
        raw_id = self.r.get(self._k_hash(token_hash))
        if raw_id is None:
            return 0
        return self.delete_by_id(int(_s(raw_id)))

    def delete_expired(self, now: datetime) -> int:
        ids = self.r.zrangebyscore(self._k_exp(), "-inf", _ts(now))
        return sum(self.delete_by_id(int(_s(i))) for i in ids)

    def delete_by_user(self, user_id: int) -> int:
        return sum(self.delete_by_id(i) for i in self._ids(self._k_user(user_id)))

    def delete_by_session(self, session_id: str) -> int:
        return sum(self.delete_by_id(i) for i in self._ids(self._k_session(session_id)))

    def list_user_tokens(self, user_id: int) -> list[RefreshTokenView]:
        key_u = self._k_user(user_id)
        out: list[RefreshTokenView] = []
        stale: list[int] = []
        for token_id in self._ids(key_u):
            view = self._load(token_id)
            if view is None:
                stale.append(token_id)
            else:
                out.append(view)
        if stale:
            self.r.srem(key_u, *stale)
        return out
