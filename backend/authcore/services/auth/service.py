# authcore/services/auth/service.py
from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from uuid import uuid4

from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy.exc import SQLAlchemyError

from authcore.services._shared.base import BaseService, Clock, ServiceContext
from authcore.services._shared.errors import (
    AuthInternalError,
    ExpiredOrInvalidTokenError,
    InvalidCredentialsError,
    TokenNotFoundError,
)
from authcore.services._shared.ports import (
    AuditCategory,
    AuditOperation,
    AuditSeverity,
    AuditSink,
    DuplicateTokenHashError,
    RefreshTokenStore,
    RefreshTokenView,
    TokenCodec,
    TokenVerificationError,
    UserCredentials,
    UserDirectory,
)
from authcore.services.auth.credentials import CredentialHasher, PasswordVerifier
from authcore.services.auth.dto import (
    AuthTokenConfig,
    LoginIn,
    LoginOut,
    LogoutIn,
    LogoutOut,
    RefreshIn,
    ReapOut,
    TokenPairOut,
)
from authcore.services.auth.reaper import ExpiryReaper

#: Store faults converted to :class:`AuthInternalError`.
PERSISTENCE_ERRORS: tuple[type[Exception], ...] = (
    SQLAlchemyError,
    RedisError,
    OSError,
    DuplicateTokenHashError,
)


class AuthService(BaseService):
    """
    Credential lifecycle service (login / refresh / logout).

    Refresh rotation is a compare-and-delete on the store: the caller whose
    ``delete_by_id(parent)`` reports one affected row owns the rotation; any
    other concurrent caller presenting the same secret removes the child it
    just minted and fails. No lock is held between lookup and delete.

    Collaborators are injected; see
    :func:`authcore.services.auth.wiring.build_auth_service` for the
    production graph.
    """

    def __init__(
        self,
        *,
        codec: TokenCodec,
        hasher: CredentialHasher,
        passwords: PasswordVerifier,
        store: RefreshTokenStore,
        users: UserDirectory,
        audit: AuditSink,
        token_cfg: AuthTokenConfig,
        reaper: ExpiryReaper | None = None,
        ctx: ServiceContext | None = None,
        clock: Clock | None = None,
    ) -> None:
        """
        :param codec: Signs and verifies access/refresh credentials.
        :param hasher: Derives the stored hash of a raw refresh secret.
        :param passwords: Password comparison.
        :param store: Refresh-record persistence.
        :param users: Read-only user directory.
        :param audit: Audit collaborator.
        :param token_cfg: Lifetimes and login policy.
        :param reaper: Expiry sweeper; one is built on ``store`` when omitted.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.codec = codec
        self.hasher = hasher
        self.passwords = passwords
        self.store = store
        self.users = users
        self.audit = audit
        self.cfg = token_cfg
        self.reaper = reaper or ExpiryReaper(store=store, audit=audit, clock=self._clock)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Every rejection (empty password, unknown email, inactive account,
        wrong password) raises the same :class:`InvalidCredentialsError`.

        :param dto: Login input.
        :returns: Token pair plus the authenticated user view.
        :raises InvalidCredentialsError: On any credential failure.
        :raises AuthInternalError: If the refresh record cannot be persisted.
        """
        password = dto.password or ""
        if not password:
            raise InvalidCredentialsError()

        email = (dto.email or "").strip().lower()
        found = self.users.get_by_email(email) if email else None
        if found is None:
            self.passwords.burn(password)
            raise InvalidCredentialsError()

        user = self.users.get_by_id(found.id)
        if user is None or not user.active:
            self.passwords.burn(password)
            raise InvalidCredentialsError()

        if not self.passwords.verify(password, user.password_hash):
            raise InvalidCredentialsError()

        if self.cfg.require_verified_email and user.email_verified_at is None:
            raise InvalidCredentialsError()

        now = self.now_utc()
        tokens, record = self._issue(
            user,
            now=now,
            session_id=str(uuid4()),
            session_expires_at=now + self.cfg.session_max_age,
            fresh=True,
        )

        self.audit.record(
            AuditSeverity.SUCCESS,
            AuditOperation.LOGIN,
            AuditCategory.AUTH,
            {"event": "LOGIN_SUCCESS", "record_id": record.id},
            user_id=user.id,
        )
        self.reaper.trigger()
        return LoginOut(tokens=tokens, user=user)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate a refresh secret: consume the presented record, mint a child.

        Steps: lookup by hash, expiry and session-cap checks, signature
        check, owner check, child issuance, parent delete. A parent delete
        that removes nothing means another caller consumed the secret first.

        :param dto: Refresh input carrying the raw secret.
        :returns: New access/refresh pair.
        :raises ExpiredOrInvalidTokenError: For every rejection, including a
            lost rotation race.
        :raises AuthInternalError: On a storage fault while issuing or
            consuming.
        """
        raw = dto.refresh_token or ""
        if not raw:
            raise ExpiredOrInvalidTokenError()

        now = self.now_utc()
        token_hash = self.hasher.hash(raw)
        with self._storage("refresh lookup"):
            parent = self.store.find_by_hash(token_hash)
        if parent is None:
            raise ExpiredOrInvalidTokenError()

        if parent.is_expired(now):
            self._discard(parent.id)
            raise ExpiredOrInvalidTokenError()

        if parent.is_session_expired(now):
            self._discard_session(parent.session_id)
            raise ExpiredOrInvalidTokenError()

        # Signature check is independent of store liveness.
        try:
            claims = self.codec.verify_refresh(raw)
        except TokenVerificationError as exc:
            self.log.info("refresh signature rejected (%s)", exc, extra={"record_id": parent.id})
            self._discard(parent.id)
            raise ExpiredOrInvalidTokenError() from None
        if claims.subject != parent.user_id:
            self._discard(parent.id)
            raise ExpiredOrInvalidTokenError()

        user = self.users.get_by_id(parent.user_id)
        if user is None or not user.active:
            self._discard(parent.id)
            raise ExpiredOrInvalidTokenError()

        tokens, child = self._issue(
            user,
            now=now,
            session_id=parent.session_id,
            session_expires_at=parent.session_expires_at,
        )

        try:
            affected = self.store.delete_by_id(parent.id)
        except PERSISTENCE_ERRORS as exc:
            self.log.error(
                "parent delete failed during rotation",
                exc_info=True,
                extra={"record_id": parent.id},
            )
            self._discard(child.id)
            raise AuthInternalError() from exc

        if affected != 1:
            # Lost the race: somebody else consumed the parent first.
            self._discard(child.id)
            self.audit.record(
                AuditSeverity.ALERT,
                AuditOperation.UPDATE,
                AuditCategory.AUTH,
                {"event": "REFRESH_REUSE_DETECTED", "record_id": parent.id},
                user_id=parent.user_id,
            )
            raise ExpiredOrInvalidTokenError()

        self.reaper.trigger()
        return tokens

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> LogoutOut:
        """
        Invalidate one refresh secret.

        :raises TokenNotFoundError: If the secret resolves to no live record.
        :raises AuthInternalError: On a storage fault.
        """
        token_hash = self.hasher.hash(dto.refresh_token or "")
        with self._storage("logout lookup"):
            record = self.store.find_by_hash(token_hash)

        if record is None:
            self.audit.record(
                AuditSeverity.ALERT,
                AuditOperation.LOGOUT,
                AuditCategory.AUTH,
                {"event": "LOGOUT_TOKEN_NOT_FOUND", "hash_prefix": token_hash[:8]},
            )
            raise TokenNotFoundError()

        with self._storage("logout delete"):
            self.store.delete_by_id(record.id)

        self.audit.record(
            AuditSeverity.SUCCESS,
            AuditOperation.LOGOUT,
            AuditCategory.AUTH,
            {"event": "LOGOUT_SUCCESS", "record_id": record.id},
            user_id=record.user_id,
        )
        return LogoutOut(user_id=record.user_id)

    def logout_all(self, user_id: int) -> int:
        """
        Delete every refresh record of ``user_id`` ("sign out everywhere").

        :returns: Number of records removed.
        """
        with self._storage("logout_all"):
            deleted = self.store.delete_by_user(user_id)
        self.audit.record(
            AuditSeverity.SUCCESS,
            AuditOperation.LOGOUT,
            AuditCategory.AUTH,
            {"event": "LOGOUT_ALL", "deleted": deleted},
            user_id=user_id,
        )
        return deleted

    def delete_expired_tokens(self) -> ReapOut:
        """Run one expiry sweep synchronously."""
        return self.reaper.delete_expired_tokens()

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    @contextmanager
    def _storage(self, what: str) -> Iterator[None]:
        try:
            yield
        except PERSISTENCE_ERRORS as exc:
            self.log.error("%s failed", what, exc_info=True)
            raise AuthInternalError() from exc

    def _issue(
        self,
        user: UserCredentials,
        *,
        now: datetime,
        session_id: str,
        session_expires_at: datetime,
        fresh: bool = False,
    ) -> tuple[TokenPairOut, RefreshTokenView]:
        """Sign a pair and persist the refresh record before returning it."""
        expires_at = min(now + self.cfg.refresh_expires, session_expires_at)
        access = self.codec.issue_access(subject=user.id, now=now, fresh=fresh)
        raw = self.codec.issue_refresh(subject=user.id, now=now, expires_at=expires_at)

        with self._storage("refresh record insert"):
            record = self.store.create(
                token_hash=self.hasher.hash(raw),
                user_id=user.id,
                expires_at=expires_at,
                session_id=session_id,
                session_expires_at=session_expires_at,
            )
        return TokenPairOut(access_token=access, refresh_token=raw), record

    def _discard(self, token_id: int) -> None:
        """Best-effort delete; failures are logged, never raised."""
        try:
            self.store.delete_by_id(token_id)
        except PERSISTENCE_ERRORS:
            self.log.warning("best-effort delete failed", exc_info=True, extra={"record_id": token_id})

    def _discard_session(self, session_id: str) -> None:
        try:
            self.store.delete_by_session(session_id)
        except PERSISTENCE_ERRORS:
            self.log.warning("best-effort session delete failed", exc_info=True)
