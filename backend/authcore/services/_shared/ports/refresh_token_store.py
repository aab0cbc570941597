from __future__ import annotations

import threading
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Protocol


class DuplicateTokenHashError(ValueError):
    """Raised by :meth:`RefreshTokenStore.create` when the hash is already stored."""


@dataclass(frozen=True, slots=True)
class RefreshTokenView:
    """
    Read-model for one persisted refresh credential.

    :ivar id: Store-assigned surrogate key (the only field safe to log).
    :ivar token_hash: Keyed hash of the raw refresh secret.
    :ivar user_id: Owner user id.
    :ivar expires_at: Absolute record expiry (UTC).
    :ivar session_id: Identifier shared by one rotation chain.
    :ivar session_expires_at: Absolute session hard cap (UTC).
    :ivar created_at: Insertion instant (UTC).
    :ivar updated_at: Last modification instant (UTC).
    """

    id: int
    token_hash: str
    user_id: int
    expires_at: datetime
    session_id: str
    session_expires_at: datetime
    created_at: datetime
    updated_at: datetime

    def is_expired(self, now: datetime) -> bool:
        """Return ``True`` once ``expires_at`` is at or before ``now``."""
        return self.expires_at <= now

    def is_session_expired(self, now: datetime) -> bool:
        """Return ``True`` once the session hard cap has passed."""
        return self.session_expires_at <= now


class RefreshTokenStore(Protocol):
    """
    Persistence port for refresh-credential records.

    Every delete MUST report how many rows *this call* removed and MUST treat
    an already-deleted row as ``0`` rather than an error: the refresh protocol
    uses ``delete_by_id(...) == 1`` as its compare-and-delete primitive.
    """

    def create(
        self,
        *,
        token_hash: str,
        user_id: int,
        expires_at: datetime,
        session_id: str,
        session_expires_at: datetime,
    ) -> RefreshTokenView:
        """
        Insert a new record.

        This MUST complete before the raw secret is handed to the client.
        Raises :class:`DuplicateTokenHashError` (or the backend's own
        integrity error) when ``token_hash`` is already stored.
        """
        ...

    def find_by_hash(self, token_hash: str) -> RefreshTokenView | None:
        """Return the live record for ``token_hash`` (if any)."""
        ...

    def delete_by_id(self, token_id: int) -> int:
        """Atomically delete one record. :returns: Rows removed by this call (0 or 1)."""
        ...

    def delete_by_hash(self, token_hash: str) -> int:
        """Delete the record for ``token_hash``. :returns: Rows removed."""
        ...

    def delete_expired(self, now: datetime) -> int:
        """Delete every record with ``expires_at <= now``. :returns: Rows removed."""
        ...

    def delete_by_user(self, user_id: int) -> int:
        """Delete every record owned by ``user_id``. :returns: Rows removed."""
        ...

    def delete_by_session(self, session_id: str) -> int:
        """Delete every record of one rotation chain. :returns: Rows removed."""
        ...

    def list_user_tokens(self, user_id: int) -> list[RefreshTokenView]:
        """List the records currently stored for ``user_id`` (expired included)."""
        ...


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Process-local refresh store.

    .. note::
       A single lock serialises each operation, which is exactly the
       atomicity the protocol needs from ``delete_by_id``. Suitable for unit
       tests and single-process development servers.
    """

    def __init__(self) -> None:
        self._by_id: dict[int, RefreshTokenView] = {}
        self._id_by_hash: dict[str, int] = {}
        self._seq = 0
        self._lock = threading.Lock()

    # -------------------------- API ----------------------------

    def create(
        self,
        *,
        token_hash: str,
        user_id: int,
        expires_at: datetime,
        session_id: str,
        session_expires_at: datetime,
    ) -> RefreshTokenView:
        now = datetime.now(UTC)
        with self._lock:
            if token_hash in self._id_by_hash:
                raise DuplicateTokenHashError("token_hash already stored")
            self._seq += 1
            view = RefreshTokenView(
                id=self._seq,
                token_hash=token_hash,
                user_id=user_id,
                expires_at=expires_at,
                session_id=session_id,
                session_expires_at=session_expires_at,
                created_at=now,
                updated_at=now,
            )
            self._by_id[view.id] = view
            self._id_by_hash[token_hash] = view.id
            return view

    def find_by_hash(self, token_hash: str) -> RefreshTokenView | None:
        with self._lock:
            token_id = self._id_by_hash.get(token_hash)
            return self._by_id.get(token_id) if token_id is not None else None

    def delete_by_id(self, token_id: int) -> int:
        with self._lock:
            return self._remove(token_id)

    def delete_by_hash(self, token_hash: str) -> int:
        with self._lock:
            token_id = self._id_by_hash.get(token_hash)
            return self._remove(token_id) if token_id is not None else 0

    def delete_expired(self, now: datetime) -> int:
        with self._lock:
            doomed = [v.id for v in self._by_id.values() if v.is_expired(now)]
            return sum(self._remove(i) for i in doomed)

    def delete_by_user(self, user_id: int) -> int:
        with self._lock:
            doomed = [v.id for v in self._by_id.values() if v.user_id == user_id]
            return sum(self._remove(i) for i in doomed)

    def delete_by_session(self, session_id: str) -> int:
        with self._lock:
            doomed = [v.id for v in self._by_id.values() if v.session_id == session_id]
            return sum(self._remove(i) for i in doomed)

    def list_user_tokens(self, user_id: int) -> list[RefreshTokenView]:
        with self._lock:
            return sorted(
                (v for v in self._by_id.values() if v.user_id == user_id),
                key=lambda v: v.id,
            )

    # ------------------------ test helpers ----------------------

    def backdate(self, token_id: int, *, expires_at: datetime) -> None:
        """Overwrite ``expires_at`` of a stored record (test support)."""
        with self._lock:
            self._by_id[token_id] = replace(self._by_id[token_id], expires_at=expires_at)

    def __len__(self) -> int:
        return len(self._by_id)

    # ------------------------- helpers --------------------------

    def _remove(self, token_id: int) -> int:
        view = self._by_id.pop(token_id, None)
        if view is None:
            return 0
        self._id_by_hash.pop(view.token_hash, None)
        return 1
