# tests/unit/infra/test_pyjwt_token_codec.py
"""Unit tests for the PyJWT-backed token codec."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import jwt
import pytest
from authcore.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from authcore.services._shared.ports import TokenVerificationError


def _now() -> datetime:
    # JWT timestamps have one-second resolution
    return datetime.now(UTC).replace(microsecond=0)


def _tamper(token: str) -> str:
    head, payload, sig = token.split(".")
    flipped = ("A" if sig[0] != "A" else "B") + sig[1:]
    return ".".join([head, payload, flipped])


class TestAccessTokens:
    def test_round_trip_claims(self, codec, token_cfg):
        now = _now()
        token = codec.issue_access(subject=7, now=now, fresh=True)

        claims = codec.verify_access(token)

        assert claims.subject == 7
        assert claims.token_type == "access"
        assert claims.issued_at == now
        assert claims.expires_at == now + token_cfg.access_expires

    def test_layout_matches_flask_jwt_extended(self, codec, token_cfg):
        token = codec.issue_access(subject=7, now=_now(), fresh=True)
        payload = jwt.decode(token, token_cfg.access_secret, algorithms=["HS256"])

        assert payload["sub"] == "7"
        assert payload["type"] == "access"
        assert payload["fresh"] is True
        assert {"jti", "iat", "nbf", "exp"} <= payload.keys()

    def test_refresh_key_cannot_verify_access(self, codec):
        token = codec.issue_access(subject=7, now=_now())
        with pytest.raises(TokenVerificationError):
            codec.verify_refresh(token)

    def test_tampered_signature(self, codec):
        token = codec.issue_access(subject=7, now=_now())
        with pytest.raises(TokenVerificationError):
            codec.verify_access(_tamper(token))


class TestRefreshTokens:
    def test_round_trip_claims(self, codec):
        now = _now()
        exp = now + timedelta(days=30)
        token = codec.issue_refresh(subject=3, now=now, expires_at=exp)

        claims = codec.verify_refresh(token)

        assert claims.subject == 3
        assert claims.token_type == "refresh"
        assert claims.expires_at == exp

    def test_jti_carries_256_bits(self, codec):
        claims = codec.verify_refresh(
            codec.issue_refresh(subject=3, now=_now(), expires_at=_now() + timedelta(days=1))
        )
        # token_urlsafe(32) -> 43 url-safe characters
        assert len(claims.jti) == 43

    def test_same_instant_tokens_differ(self, codec):
        now = _now()
        exp = now + timedelta(days=1)
        assert codec.issue_refresh(subject=3, now=now, expires_at=exp) != codec.issue_refresh(
            subject=3, now=now, expires_at=exp
        )

    def test_has_no_not_before_claim(self, codec, token_cfg):
        token = codec.issue_refresh(subject=3, now=_now(), expires_at=_now() + timedelta(days=1))
        payload = jwt.decode(token, token_cfg.refresh_secret, algorithms=["HS256"])
        assert "nbf" not in payload

    def test_access_key_cannot_verify_refresh(self, codec):
        token = codec.issue_refresh(subject=3, now=_now(), expires_at=_now() + timedelta(days=1))
        with pytest.raises(TokenVerificationError):
            codec.verify_access(token)

    def test_expired(self, codec, freeze_time):
        with freeze_time("2030-01-01 12:00:00") as frozen:
            now = datetime.now(UTC)
            token = codec.issue_refresh(subject=3, now=now, expires_at=now + timedelta(hours=1))
            assert codec.verify_refresh(token).subject == 3

            frozen.tick(timedelta(hours=2))
            with pytest.raises(TokenVerificationError, match="ExpiredSignatureError"):
                codec.verify_refresh(token)

    def test_wrong_type_with_right_key(self, codec, token_cfg):
        now = _now()
        forged = jwt.encode(
            {"sub": "3", "type": "access", "jti": "x", "iat": now, "exp": now + timedelta(hours=1)},
            token_cfg.refresh_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenVerificationError, match="wrong token type"):
            codec.verify_refresh(forged)

    @pytest.mark.parametrize("subject", ["abc", "", "-1"])
    def test_non_numeric_subject(self, codec, token_cfg, subject):
        now = _now()
        forged = jwt.encode(
            {"sub": subject, "type": "refresh", "jti": "x", "iat": now, "exp": now + timedelta(hours=1)},
            token_cfg.refresh_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenVerificationError):
            codec.verify_refresh(forged)

    def test_missing_required_claim(self, codec, token_cfg):
        now = _now()
        forged = jwt.encode(
            {"sub": "3", "type": "refresh", "iat": now, "exp": now + timedelta(hours=1)},
            token_cfg.refresh_secret,
            algorithm="HS256",
        )
        with pytest.raises(TokenVerificationError):
            codec.verify_refresh(forged)

    @pytest.mark.parametrize("garbage", ["", "abc", "a.b.c"])
    def test_malformed(self, codec, garbage):
        with pytest.raises(TokenVerificationError):
            codec.verify_refresh(garbage)


class TestIssuerAudience:
    @pytest.fixture()
    def scoped(self, token_cfg):
        return PyJWTTokenCodec(replace(token_cfg, issuer="authcore", audience="api"))

    def test_round_trip(self, scoped, token_cfg):
        token = scoped.issue_access(subject=1, now=_now())
        payload = jwt.decode(
            token, token_cfg.access_secret, algorithms=["HS256"], audience="api", issuer="authcore"
        )
        assert payload["iss"] == "authcore"
        assert scoped.verify_access(token).subject == 1

    def test_unscoped_token_rejected(self, scoped, codec):
        token = codec.issue_access(subject=1, now=_now())
        with pytest.raises(TokenVerificationError):
            scoped.verify_access(token)
