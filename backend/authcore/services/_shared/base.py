# authcore/services/_shared/base.py
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime

from authcore.core import errors as api_errors
from authcore.services._shared.errors import (
    AuthInternalError,
    ExpiredOrInvalidTokenError,
    InvalidCredentialsError,
    ServiceError,
    TokenNotFoundError,
)

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    """Default clock: timezone-aware UTC now."""
    return datetime.now(UTC)


@dataclass(slots=True)
class ServiceContext:
    """
    Carry cross-cutting request-scoped data.

    :param request_id: Correlation id for logging/tracing.
    :param client_ip: Remote address as seen after proxy fix-up.
    """

    request_id: str | None = None
    client_ip: str | None = None


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Own an injectable clock so time-dependent rules are testable.
    * Provide a per-service logger.
    * Centralize error translation to API errors.

    Notes
    -----
    Services receive their collaborators (stores, codecs, directories) through
    the constructor; they never reach for module-level singletons.
    """

    def __init__(self, *, ctx: ServiceContext | None = None, clock: Clock | None = None) -> None:
        """
        Initialize the base service.

        :param ctx: Optional request-scoped context.
        :type ctx: ServiceContext | None
        :param clock: Callable returning the current UTC instant.
        :type clock: Callable[[], datetime] | None
        """
        self.ctx = ctx or ServiceContext()
        self._clock = clock or system_clock
        self.log = logging.getLogger(f"{type(self).__module__}.{type(self).__name__}")

    def now_utc(self) -> datetime:
        """Return the current instant from the injected clock."""
        return self._clock()

    # -------------------------- Error handling ------------------------------

    def translate_exceptions(self, exc: Exception) -> Exception:
        """
        Map domain/service-level errors to API-level (HTTP) errors.

        :param exc: Exception raised within the service.
        :type exc: Exception
        :returns: Translated exception ready to be re-raised.
        :rtype: Exception
        """
        if isinstance(exc, InvalidCredentialsError):
            # → 401, same body for every login failure cause
            return api_errors.Unauthorized(str(exc), code="invalid_credentials")

        if isinstance(exc, ExpiredOrInvalidTokenError):
            # → 401, same body for every refresh failure cause
            return api_errors.Unauthorized(str(exc), code="expired_or_invalid_token")

        if isinstance(exc, TokenNotFoundError):
            # → 404
            return api_errors.NotFound(str(exc), code="token_not_found")

        if isinstance(exc, AuthInternalError):
            # → 500
            return api_errors.InternalServerError(str(exc))

        if isinstance(exc, ServiceError):
            return api_errors.APIError(message=str(exc), status_code=400, code="bad_request")

        # Fallback: return untouched (will bubble up to the Flask handler)
        return exc
