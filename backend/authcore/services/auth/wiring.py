# authcore/services/auth/wiring.py
"""Compose the auth service graph from Flask configuration.

Long-lived collaborators (codec, store, reaper executor) are built once per
app and kept in ``app.extensions["authcore"]``; :func:`build_auth_service`
hands out a fresh :class:`AuthService` bound to the current request context.
"""

from __future__ import annotations

import atexit
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from flask import Flask, current_app

from authcore.core.extensions import get_redis
from authcore.infra.audit.logging_audit_sink import LoggingAuditSink
from authcore.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from authcore.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from authcore.infra.sql.sqlalchemy_refresh_token_store import SQLAlchemyRefreshTokenStore
from authcore.infra.sql.sqlalchemy_user_directory import SQLAlchemyUserDirectory
from authcore.services._shared.base import ServiceContext
from authcore.services._shared.ports import (
    AuditSink,
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    TokenCodec,
    UserDirectory,
)
from authcore.services.auth.credentials import CredentialHasher, PasswordVerifier
from authcore.services.auth.dto import AuthTokenConfig
from authcore.services.auth.reaper import ExpiryReaper, PeriodicReaper
from authcore.services.auth.service import AuthService

EXTENSION_KEY = "authcore"
BACKENDS = ("sql", "redis", "memory")

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class AuthComponents:
    """Per-app collaborators shared by every request."""

    cfg: AuthTokenConfig
    codec: TokenCodec
    hasher: CredentialHasher
    passwords: PasswordVerifier
    store: RefreshTokenStore
    users: UserDirectory
    audit: AuditSink
    reaper: ExpiryReaper
    periodic: PeriodicReaper | None = None


def build_store(app: Flask) -> RefreshTokenStore:
    """Select the refresh store named by ``REFRESH_STORE_BACKEND``."""
    backend = str(app.config.get("REFRESH_STORE_BACKEND", "sql")).lower()
    if backend == "sql":
        return SQLAlchemyRefreshTokenStore()
    if backend == "redis":
        return RedisRefreshTokenStore(get_redis())
    if backend == "memory":
        return InMemoryRefreshTokenStore()
    raise ValueError(f"Unknown REFRESH_STORE_BACKEND {backend!r}; expected one of {BACKENDS}.")


def build_components(app: Flask) -> AuthComponents:
    cfg = AuthTokenConfig.from_mapping(app.config)
    store = build_store(app)
    audit = LoggingAuditSink()

    executor = None
    if app.config.get("REAPER_ASYNC"):
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="authcore-reaper")
        atexit.register(executor.shutdown, wait=False)

    reaper = ExpiryReaper(store=store, audit=audit, executor=executor, context=app.app_context)

    periodic = None
    interval = float(app.config.get("REAPER_INTERVAL_SECONDS", 0) or 0)
    if interval > 0:
        periodic = PeriodicReaper(reaper, interval)

    return AuthComponents(
        cfg=cfg,
        codec=PyJWTTokenCodec(cfg),
        hasher=CredentialHasher(cfg.refresh_secret),
        passwords=PasswordVerifier(),
        store=store,
        users=SQLAlchemyUserDirectory(),
        audit=audit,
        reaper=reaper,
        periodic=periodic,
    )


def init_app(app: Flask) -> AuthComponents:
    """Build the components, register them on ``app`` and start the periodic sweep."""
    components = build_components(app)
    app.extensions[EXTENSION_KEY] = components
    if components.periodic is not None:
        components.periodic.start()
        atexit.register(components.periodic.stop)
        logger.info("periodic expiry sweep every %.0fs", components.periodic.interval)
    return components


def get_components(app: Flask | None = None) -> AuthComponents:
    app = app or current_app._get_current_object()  # type: ignore[attr-defined]
    components = app.extensions.get(EXTENSION_KEY)
    if components is None:
        components = init_app(app)
    return components


def build_auth_service(app: Flask | None = None, *, ctx: ServiceContext | None = None) -> AuthService:
    """
    Return an :class:`AuthService` wired to the app's shared collaborators.

    :param app: Application; defaults to ``current_app``.
    :param ctx: Request-scoped context (request id, client ip).
    """
    c = get_components(app)
    return AuthService(
        codec=c.codec,
        hasher=c.hasher,
        passwords=c.passwords,
        store=c.store,
        users=c.users,
        audit=c.audit,
        token_cfg=c.cfg,
        reaper=c.reaper,
        ctx=ctx,
    )
