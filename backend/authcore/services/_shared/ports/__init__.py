"""
authcore.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts the
credential subsystem consumes.

These ports decouple the auth service from concrete implementations of
token signing, refresh-record persistence, user lookup and audit logging.

Modules
-------
- :mod:`token_codec`:
    Defines :class:`~.TokenCodec`: stateless JWT signing/verification.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore` and :class:`~.RefreshTokenView`,
    plus the lock-based :class:`~.InMemoryRefreshTokenStore`.

- :mod:`user_directory`:
    Defines :class:`~.UserDirectory` and the :class:`~.UserCredentials` view.

- :mod:`audit_sink`:
    Defines :class:`~.AuditSink` and the audit severity/operation/category enums.

Design Notes
------------
Concrete adapters (SQLAlchemy, Redis, PyJWT, logging) live under
``authcore.infra`` and are selected by :func:`authcore.services.auth.wiring.build_auth_service`.
"""

from __future__ import annotations

from .audit_sink import (
    AuditCategory,
    AuditEntry,
    AuditOperation,
    AuditSeverity,
    AuditSink,
    InMemoryAuditSink,
)
from .refresh_token_store import (
    DuplicateTokenHashError,
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    RefreshTokenView,
)
from .token_codec import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    TokenCodec,
    TokenVerificationError,
)
from .user_directory import InMemoryUserDirectory, UserCredentials, UserDirectory

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "AuditCategory",
    "AuditEntry",
    "AuditOperation",
    "AuditSeverity",
    "AuditSink",
    "DuplicateTokenHashError",
    "InMemoryAuditSink",
    "InMemoryRefreshTokenStore",
    "InMemoryUserDirectory",
    "RefreshTokenStore",
    "RefreshTokenView",
    "TokenClaims",
    "TokenCodec",
    "TokenVerificationError",
    "UserCredentials",
    "UserDirectory",
]
