# authcore/infra/jwt/pyjwt_token_codec.py
from __future__ import annotations

import secrets
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

import jwt
from authcore.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    TokenClaims,
    TokenCodec,
    TokenVerificationError,
)
from authcore.services.auth.dto import AuthTokenConfig

REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti", "type"]


@dataclass(slots=True)
class PyJWTTokenCodec(TokenCodec):
    """
    PyJWT adapter signing with keys injected through :class:`AuthTokenConfig`.

    Access tokens carry the claim layout flask-jwt-extended expects
    (``sub`` as string, ``type``, ``fresh``, ``jti``, ``nbf``) so protected
    routes can verify them with ``verify_jwt_in_request``. Access and refresh
    credentials use different keys, so one can never be replayed as the other.

    .. note::
       ``jwt.decode`` checks ``exp``/``nbf`` against the wall clock, not the
       service clock.
    """

    cfg: AuthTokenConfig

    # -------------------- helpers --------------------

    def _encode(self, payload: dict[str, Any], key: str) -> str:
        if self.cfg.issuer:
            payload["iss"] = self.cfg.issuer
        if self.cfg.audience:
            payload["aud"] = self.cfg.audience
        return jwt.encode(payload, key, algorithm=self.cfg.algorithm)

    def _decode(self, token: str, *, key: str, expected_type: str) -> TokenClaims:
        try:
            data = jwt.decode(
                token,
                key,
                algorithms=[self.cfg.algorithm],
                issuer=self.cfg.issuer,
                audience=self.cfg.audience,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.PyJWTError as exc:
            raise TokenVerificationError(type(exc).__name__) from exc

        if data.get("type") != expected_type:
            raise TokenVerificationError("wrong token type")
        subject = data.get("sub")
        if not isinstance(subject, str) or not subject.isdigit():
            raise TokenVerificationError("invalid subject")

        return TokenClaims(
            subject=int(subject),
            token_type=expected_type,
            jti=str(data["jti"]),
            issued_at=datetime.fromtimestamp(int(data["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(data["exp"]), tz=UTC),
        )

    # -------------------- API ------------------------

    def issue_access(self, *, subject: int, now: datetime, fresh: bool = False) -> str:
        payload: dict[str, Any] = {
            "sub": str(subject),
            "type": ACCESS_TOKEN_TYPE,
            "fresh": fresh,
            "jti": uuid4().hex,
            "iat": now,
            "nbf": now,
            "exp": now + self.cfg.access_expires,
        }
        return self._encode(payload, self.cfg.access_secret)

    def issue_refresh(self, *, subject: int, now: datetime, expires_at: datetime) -> str:
        # jti: 32 random bytes (256 bits)
        payload: dict[str, Any] = {
            "sub": str(subject),
            "type": REFRESH_TOKEN_TYPE,
            "jti": secrets.token_urlsafe(32),
            "iat": now,
            "exp": expires_at,
        }
        return self._encode(payload, self.cfg.refresh_secret)

    def verify_access(self, token: str) -> TokenClaims:
        return self._decode(token, key=self.cfg.access_secret, expected_type=ACCESS_TOKEN_TYPE)

    def verify_refresh(self, token: str) -> TokenClaims:
        return self._decode(token, key=self.cfg.refresh_secret, expected_type=REFRESH_TOKEN_TYPE)
