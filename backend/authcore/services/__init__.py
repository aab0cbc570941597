"""Service layer public API.

Callers import from :mod:`authcore.services` without knowing the internal
layout.

Re-exports
----------
- Base primitives (from ``authcore.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Service errors (from ``authcore.services._shared.errors``)
    * :class:`ServiceError` and its auth subclasses

The auth service itself lives in :mod:`authcore.services.auth.service` and is
built by :func:`authcore.services.auth.wiring.build_auth_service`.
"""

from __future__ import annotations

from ._shared.base import BaseService, ServiceContext
from ._shared.errors import (
    AuthInternalError,
    ExpiredOrInvalidTokenError,
    InvalidCredentialsError,
    ServiceError,
    TokenNotFoundError,
)

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Errors
    "ServiceError",
    "InvalidCredentialsError",
    "ExpiredOrInvalidTokenError",
    "TokenNotFoundError",
    "AuthInternalError",
]
