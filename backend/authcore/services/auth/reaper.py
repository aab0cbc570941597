# authcore/services/auth/reaper.py
"""Bulk cleanup of expired refresh records.

Nothing in the refresh protocol depends on the sweep having run: an expired
record is rejected by its ``expires_at`` check anyway. Sweeping only keeps
the table small.
"""

from __future__ import annotations

import threading
from collections.abc import Callable
from concurrent.futures import Executor, Future
from contextlib import AbstractContextManager, nullcontext

from authcore.services._shared.base import BaseService, Clock, ServiceContext
from authcore.services._shared.ports import (
    AuditCategory,
    AuditOperation,
    AuditSeverity,
    AuditSink,
    RefreshTokenStore,
)
from authcore.services.auth.dto import ReapOut


class ExpiryReaper(BaseService):
    """
    Delete every refresh record whose ``expires_at`` has passed.

    :param store: Refresh store to sweep.
    :param audit: Receives one DEBUG entry per sweep with the count.
    :param executor: When given, :meth:`trigger` submits the sweep to it
        instead of running inline.
    :param context: Context manager factory entered around background runs
        (the Flask app context for the SQL store).
    """

    def __init__(
        self,
        *,
        store: RefreshTokenStore,
        audit: AuditSink,
        executor: Executor | None = None,
        context: Callable[[], AbstractContextManager[object]] | None = None,
        ctx: ServiceContext | None = None,
        clock: Clock | None = None,
    ) -> None:
        super().__init__(ctx=ctx, clock=clock)
        self.store = store
        self.audit = audit
        self.executor = executor
        self._context = context or nullcontext

    def delete_expired_tokens(self) -> ReapOut:
        """
        Run one sweep. Idempotent: a second call right after returns ``0``.

        :returns: Number of records this sweep removed.
        :rtype: ReapOut
        """
        deleted = self.store.delete_expired(self.now_utc())
        self.audit.record(
            AuditSeverity.DEBUG,
            AuditOperation.DELETE,
            AuditCategory.AUTH,
            {"event": "EXPIRED_TOKENS_DELETED", "deleted": deleted},
        )
        return ReapOut(deleted=deleted)

    def trigger(self) -> Future[ReapOut | None] | None:
        """
        Best-effort sweep used after successful logins and refreshes.

        Never raises. Returns the future when an executor is configured.
        """
        if self.executor is None:
            self.run_quietly(in_context=False)
            return None
        try:
            return self.executor.submit(self.run_quietly)
        except RuntimeError:
            # Executor already shut down
            self.log.warning("expiry sweep not scheduled: executor is shut down")
            return None

    def run_quietly(self, *, in_context: bool = True) -> ReapOut | None:
        """Run a sweep, logging instead of raising on failure."""
        try:
            if in_context:
                with self._context():
                    return self.delete_expired_tokens()
            return self.delete_expired_tokens()
        except Exception:
            self.log.warning("expiry sweep failed", exc_info=True)
            return None


class PeriodicReaper:
    """
    Daemon thread running :meth:`ExpiryReaper.run_quietly` every ``interval`` seconds.

    :param reaper: Reaper to drive.
    :param interval: Seconds between sweeps; must be positive.
    """

    def __init__(self, reaper: ExpiryReaper, interval: float) -> None:
        if interval <= 0:
            raise ValueError("PeriodicReaper interval must be positive.")
        self.reaper = reaper
        self.interval = float(interval)
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="authcore-reaper", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = 5.0) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
        self._thread = None

    def _loop(self) -> None:
        while not self._stop.wait(self.interval):
            self.reaper.run_quietly()
