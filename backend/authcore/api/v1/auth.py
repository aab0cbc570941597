"""Authentication endpoints: thin HTTP adapter over :class:`AuthService`."""

from __future__ import annotations

from flask import Blueprint, Response, current_app, request
from flask_jwt_extended import get_jwt, get_jwt_identity

from authcore.api.deps import get_auth_service, json_response, require_auth, timing
from authcore.core.extensions import limiter
from authcore.schemas import (
    LoginResponseSchema,
    LoginSchema,
    LogoutResponseSchema,
    RefreshTokenSchema,
    TokenPairSchema,
    WhoAmISchema,
)
from authcore.services._shared.errors import ServiceError
from authcore.services.auth.dto import LoginIn, LogoutIn, RefreshIn

bp = Blueprint("auth", __name__)

login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
login_response_schema = LoginResponseSchema()
token_schema = TokenPairSchema()
logout_schema = LogoutResponseSchema()
whoami_schema = WhoAmISchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _cookie_name() -> str:
    return str(current_app.config.get("REFRESH_COOKIE_NAME", "refresh_token"))


def _raw_refresh_token() -> str:
    """Read the refresh secret from the JSON body, falling back to the cookie."""

    data = refresh_schema.load(request.get_json(silent=True) or {})
    return data.get("refresh_token") or request.cookies.get(_cookie_name(), "")


def _access_expires_in() -> int:
    return int(current_app.config.get("ACCESS_TOKEN_TTL_MINUTES", 15)) * 60


def _set_refresh_cookie(response: Response, raw: str) -> None:
    response.set_cookie(
        _cookie_name(),
        raw,
        max_age=int(current_app.config.get("REFRESH_TOKEN_TTL_DAYS", 30)) * 86400,
        httponly=True,
        secure=bool(current_app.config.get("REFRESH_COOKIE_SECURE", True)),
        samesite="Strict",
        path="/",
    )


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue an access/refresh pair."""

    data = login_schema.load(request.get_json(silent=True) or {})
    service = get_auth_service()
    try:
        out = service.login(LoginIn(email=data["email"], password=data["password"]))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc

    body = {
        "data": login_response_schema.dump(
            {
                "access_token": out.access_token,
                "refresh_token": out.refresh_token,
                "expires_in": _access_expires_in(),
                "user": out.user.public(),
            }
        )
    }
    response = json_response(body)
    _set_refresh_cookie(response, out.refresh_token)
    return response


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh secret and return the new pair."""

    raw = _raw_refresh_token()
    service = get_auth_service()
    try:
        pair = service.refresh(RefreshIn(refresh_token=raw))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc

    body = {
        "data": token_schema.dump(
            {
                "access_token": pair.access_token,
                "refresh_token": pair.refresh_token,
                "expires_in": _access_expires_in(),
            }
        )
    }
    response = json_response(body)
    _set_refresh_cookie(response, pair.refresh_token)
    return response


@bp.post("/logout")
@timing
def logout():
    """Invalidate one refresh secret and clear the cookie."""

    raw = _raw_refresh_token()
    service = get_auth_service()
    try:
        out = service.logout(LogoutIn(refresh_token=raw))
    except ServiceError as exc:
        raise service.translate_exceptions(exc) from exc

    response = json_response({"data": logout_schema.dump({"user_id": out.user_id})})
    response.delete_cookie(_cookie_name(), path="/")
    return response


@bp.get("/whoami")
@require_auth
@timing
def whoami():
    """Return the identity bound to the presented access token."""

    claims = get_jwt()
    body = {
        "data": whoami_schema.dump(
            {
                "user_id": int(get_jwt_identity()),
                "fresh": bool(claims.get("fresh", False)),
                "jti": claims.get("jti"),
            }
        )
    }
    return json_response(body)
