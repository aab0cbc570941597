# authcore/infra/audit/logging_audit_sink.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field

from authcore.services._shared.ports import (
    AuditCategory,
    AuditOperation,
    AuditSeverity,
    AuditSink,
)

LEVELS: dict[AuditSeverity, int] = {
    AuditSeverity.ERROR: logging.ERROR,
    AuditSeverity.ALERT: logging.WARNING,
    AuditSeverity.SUCCESS: logging.INFO,
    AuditSeverity.DEBUG: logging.DEBUG,
}


@dataclass(slots=True)
class LoggingAuditSink(AuditSink):
    """
    Audit sink writing structured records to the ``authcore.audit`` logger.

    Severity, operation and category travel as ``extra`` fields, which the
    JSON formatter in :mod:`authcore.core.logger` emits as top-level keys.
    """

    logger: logging.Logger = field(default_factory=lambda: logging.getLogger("authcore.audit"))

    def record(
        self,
        severity: AuditSeverity,
        operation: AuditOperation,
        category: AuditCategory,
        detail: str | dict[str, object],
        user_id: int | None = None,
    ) -> None:
        extra: dict[str, object] = {
            "audit_severity": severity.value,
            "operation": operation.value,
            "category": category.value,
        }
        if user_id is not None:
            extra["user_id"] = user_id

        if isinstance(detail, dict):
            message = str(detail.get("event", operation.value))
            for key in ("record_id", "deleted"):
                if key in detail:
                    extra[key] = detail[key]
        else:
            message = detail

        self.logger.log(LEVELS[severity], message, extra=extra)
