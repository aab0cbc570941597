from __future__ import annotations

import threading
from dataclasses import dataclass
from enum import Enum
from typing import Protocol


class AuditSeverity(str, Enum):
    """Severity of an audit entry, ordered from most to least urgent."""

    ERROR = "error"
    ALERT = "alert"
    SUCCESS = "success"
    DEBUG = "debug"


class AuditOperation(str, Enum):
    CREATE = "create"
    DELETE = "delete"
    LOGIN = "login"
    LOGOUT = "logout"
    UPDATE = "update"


class AuditCategory(str, Enum):
    AUTH = "auth"


@dataclass(frozen=True, slots=True)
class AuditEntry:
    """
    One audit record as handed to a sink.

    ``detail`` is a short stable event code (e.g. ``LOGOUT_SUCCESS``) or a
    small mapping; raw secrets and full token hashes never appear in it.
    """

    severity: AuditSeverity
    operation: AuditOperation
    category: AuditCategory
    detail: str | dict[str, object]
    user_id: int | None = None


class AuditSink(Protocol):
    """Port onto the audit/log collaborator."""

    def record(
        self,
        severity: AuditSeverity,
        operation: AuditOperation,
        category: AuditCategory,
        detail: str | dict[str, object],
        user_id: int | None = None,
    ) -> None: ...


class InMemoryAuditSink(AuditSink):
    """Collects entries in a list; used by unit tests to assert audit trails."""

    def __init__(self) -> None:
        self.entries: list[AuditEntry] = []
        self._lock = threading.Lock()

    def record(
        self,
        severity: AuditSeverity,
        operation: AuditOperation,
        category: AuditCategory,
        detail: str | dict[str, object],
        user_id: int | None = None,
    ) -> None:
        with self._lock:
            self.entries.append(AuditEntry(severity, operation, category, detail, user_id))

    def events(self, severity: AuditSeverity | None = None) -> list[str]:
        """Return the event codes recorded so far, optionally filtered by severity."""
        out: list[str] = []
        for e in self.entries:
            if severity is not None and e.severity != severity:
                continue
            code = e.detail if isinstance(e.detail, str) else str(e.detail.get("event", ""))
            out.append(code)
        return out
