# authcore/services/auth/credentials.py
"""One-way hashing of refresh secrets and constant-effort password checks."""

from __future__ import annotations

import hashlib
import hmac
import secrets
from functools import cached_property

from werkzeug.security import check_password_hash, generate_password_hash


class CredentialHasher:
    """
    Derive the storage key of a raw refresh secret.

    HMAC-SHA256 keyed with the refresh signing secret: a leaked table of
    hashes is useless without the key, and the raw secret is never stored.
    """

    def __init__(self, key: str) -> None:
        if not key:
            raise ValueError("CredentialHasher requires a non-empty key.")
        self._key = key.encode("utf-8")

    def hash(self, raw_secret: str) -> str:
        """Return the 64-char hex digest used as ``token_hash``."""
        return hmac.new(self._key, raw_secret.encode("utf-8"), hashlib.sha256).hexdigest()


class PasswordVerifier:
    """
    Compare submitted passwords against salted adaptive hashes.

    Uses werkzeug's ``check_password_hash`` (scrypt/pbkdf2). When there is no
    stored hash to compare against (unknown email), :meth:`burn` runs the same
    comparison against a throwaway hash so the response time does not reveal
    whether the account exists.
    """

    @cached_property
    def _dummy_hash(self) -> str:
        return generate_password_hash(secrets.token_urlsafe(16))

    def verify(self, password: str, stored_hash: str | None) -> bool:
        """
        Check ``password`` against ``stored_hash``.

        :returns: ``True`` on match; ``False`` for a mismatch or missing hash.
        """
        if not password:
            return False
        if not stored_hash:
            self.burn(password)
            return False
        try:
            return bool(check_password_hash(stored_hash, password))
        except ValueError:
            # Unknown/corrupt hash format
            return False

    def burn(self, password: str) -> None:
        """Spend one hash comparison worth of work and discard the result."""
        check_password_hash(self._dummy_hash, password or "")
