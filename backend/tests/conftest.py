"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Service-level
fixtures wire :class:`AuthService` to in-memory ports so the protocol can be
exercised without Flask.
"""

from __future__ import annotations

import os
from typing import Any, Callable

import pytest
from authcore.core.config import TestingConfig
from authcore.core.extensions import db as _db  # Flask-SQLAlchemy instance
from authcore.factory import create_app  # application factory under test
from authcore.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from authcore.services._shared.ports import (
    InMemoryAuditSink,
    InMemoryRefreshTokenStore,
    InMemoryUserDirectory,
)
from authcore.services.auth.credentials import CredentialHasher, PasswordVerifier
from authcore.services.auth.dto import AuthTokenConfig
from authcore.services.auth.service import AuthService
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

from tests.helpers.auth import DEFAULT_PASSWORD, make_credentials


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestingConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    app = create_app(TestingConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Notes
    -----
    Begins a top-level transaction, starts a SAVEPOINT per test, and
    reinstalls the SAVEPOINT whenever SQLAlchemy ends one. Unit of Work
    commits therefore stay inside the test's outer transaction.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def client(app):
    """Return a Flask test client."""
    with app.app_context():
        yield app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


@pytest.fixture()
def freeze_time() -> Callable[[str | None], Any]:
    """Factory returning :func:`freezegun.freeze_time`.

    Examples
    --------
    >>> def test_with_frozen_time(freeze_time):
    ...     with freeze_time("2030-01-01") as frozen:
    ...         frozen.tick(60)
    """
    from freezegun import freeze_time as _freeze_time

    def _factory(target: str | None = None) -> Any:
        return _freeze_time(target or "2030-01-01 12:00:00", tz_offset=0)

    return _factory


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- In-memory auth graph ------------------------------------------------------
@pytest.fixture()
def token_cfg() -> AuthTokenConfig:
    return AuthTokenConfig(
        access_secret=TestingConfig.JWT_ACCESS_SECRET,
        refresh_secret=TestingConfig.JWT_REFRESH_SECRET,
    )


@pytest.fixture()
def codec(token_cfg) -> PyJWTTokenCodec:
    return PyJWTTokenCodec(token_cfg)


@pytest.fixture()
def hasher(token_cfg) -> CredentialHasher:
    return CredentialHasher(token_cfg.refresh_secret)


@pytest.fixture()
def memory_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def audit() -> InMemoryAuditSink:
    return InMemoryAuditSink()


@pytest.fixture()
def directory() -> InMemoryUserDirectory:
    """Directory holding one active user ``alice@example.com`` (id 1)."""
    return InMemoryUserDirectory([make_credentials(1, "alice@example.com")])


@pytest.fixture()
def build_service(codec, hasher, token_cfg, memory_store, directory, audit):
    """Factory building an :class:`AuthService` over the in-memory ports.

    Keyword overrides replace any collaborator (``store=...``, ``token_cfg=...``).
    """

    def _build(**overrides: Any) -> AuthService:
        deps: dict[str, Any] = {
            "codec": codec,
            "hasher": hasher,
            "passwords": PasswordVerifier(),
            "store": memory_store,
            "users": directory,
            "audit": audit,
            "token_cfg": token_cfg,
        }
        deps.update(overrides)
        return AuthService(**deps)

    return _build


@pytest.fixture()
def auth_service(build_service) -> AuthService:
    return build_service()


@pytest.fixture()
def password() -> str:
    return DEFAULT_PASSWORD
