from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


class TokenVerificationError(ValueError):
    """Raised by a codec when a credential is forged, malformed, expired or of the wrong type."""


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified claims of a signed credential.

    :ivar subject: User id bound by the ``sub`` claim.
    :ivar token_type: ``"access"`` or ``"refresh"``.
    :ivar jti: Unique token identifier (256 random bits for refresh secrets).
    :ivar issued_at: ``iat`` claim (UTC).
    :ivar expires_at: ``exp`` claim (UTC).
    """

    subject: int
    token_type: str
    jti: str
    issued_at: datetime
    expires_at: datetime


class TokenCodec(Protocol):
    """
    Stateless signing/verification of access and refresh credentials.

    Implementations hold their signing material as injected configuration;
    they never touch storage.
    """

    def issue_access(self, *, subject: int, now: datetime, fresh: bool = False) -> str:
        """Sign a short-lived access credential for ``subject``."""
        ...

    def issue_refresh(self, *, subject: int, now: datetime, expires_at: datetime) -> str:
        """Sign a refresh credential carrying a fresh high-entropy ``jti``."""
        ...

    def verify_access(self, token: str) -> TokenClaims:
        """:raises TokenVerificationError: When the access credential is not valid."""
        ...

    def verify_refresh(self, token: str) -> TokenClaims:
        """:raises TokenVerificationError: When the refresh credential is not valid."""
        ...
