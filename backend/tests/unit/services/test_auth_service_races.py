# tests/unit/services/test_auth_service_races.py
"""
Concurrent use of one refresh secret.

Exactly one caller may rotate a given parent; every other caller fails and
leaves no child record behind.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor

import pytest
from authcore.services._shared.errors import ExpiredOrInvalidTokenError
from authcore.services._shared.ports import AuditSeverity, InMemoryRefreshTokenStore
from authcore.services.auth.dto import LoginIn, RefreshIn, TokenPairOut

EMAIL = "alice@example.com"


class PreemptedStore(InMemoryRefreshTokenStore):
    """
    Let a competing caller consume ``race_target`` just before our delete.

    Models the interleaving where two callers both passed the lookup and the
    other one reached ``delete_by_id`` first.
    """

    def __init__(self) -> None:
        super().__init__()
        self.race_target: int | None = None

    def delete_by_id(self, token_id: int) -> int:
        if token_id == self.race_target:
            self.race_target = None
            super().delete_by_id(token_id)  # the other caller wins
        return super().delete_by_id(token_id)


def test_losing_caller_discards_child_and_alerts(build_service, audit, password):
    store = PreemptedStore()
    service = build_service(store=store)
    pair = service.login(LoginIn(email=EMAIL, password=password)).tokens
    [parent] = store.list_user_tokens(1)
    store.race_target = parent.id

    with pytest.raises(ExpiredOrInvalidTokenError):
        service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    # Parent consumed by the competitor, our child discarded.
    assert len(store) == 0
    [alert] = [e for e in audit.entries if e.severity is AuditSeverity.ALERT]
    assert alert.detail == {"event": "REFRESH_REUSE_DETECTED", "record_id": parent.id}
    assert alert.user_id == 1


class StalledDiscardStore(PreemptedStore):
    """Preempted store where deleting anything but ``parent_id`` times out."""

    def __init__(self) -> None:
        super().__init__()
        self.parent_id: int | None = None

    def delete_by_id(self, token_id: int) -> int:
        if self.parent_id is not None and token_id != self.parent_id:
            raise TimeoutError("store did not answer")
        return super().delete_by_id(token_id)


def test_failed_child_discard_still_rejects(build_service, audit, password, caplog):
    store = StalledDiscardStore()
    service = build_service(store=store)
    pair = service.login(LoginIn(email=EMAIL, password=password)).tokens
    [parent] = store.list_user_tokens(1)
    store.race_target = store.parent_id = parent.id

    with caplog.at_level(logging.WARNING):
        with pytest.raises(ExpiredOrInvalidTokenError):
            service.refresh(RefreshIn(refresh_token=pair.refresh_token))

    # The orphaned child stays until it expires.
    [child] = store.list_user_tokens(1)
    assert child.id != parent.id
    [failure] = [r for r in caplog.records if r.getMessage() == "best-effort delete failed"]
    assert failure.record_id == child.id
    assert audit.events(AuditSeverity.ALERT) == ["REFRESH_REUSE_DETECTED"]


@pytest.mark.parametrize("callers", [2, 8])
def test_exactly_one_concurrent_refresh_wins(build_service, memory_store, password, callers):
    service = build_service()
    pair = service.login(LoginIn(email=EMAIL, password=password)).tokens
    barrier = threading.Barrier(callers)

    def attempt():
        barrier.wait(timeout=5)
        try:
            return service.refresh(RefreshIn(refresh_token=pair.refresh_token))
        except ExpiredOrInvalidTokenError as exc:
            return exc

    with ThreadPoolExecutor(max_workers=callers) as pool:
        results = list(pool.map(lambda _: attempt(), range(callers)))

    winners = [r for r in results if isinstance(r, TokenPairOut)]
    losers = [r for r in results if isinstance(r, ExpiredOrInvalidTokenError)]
    assert len(winners) == 1
    assert len(losers) == callers - 1

    # Only the winner's child survives, and it rotates normally.
    assert len(memory_store) == 1
    assert service.refresh(RefreshIn(refresh_token=winners[0].refresh_token))
