"""Factory Boy definitions for :mod:`authcore.models`."""

from __future__ import annotations

from datetime import timedelta

import factory
from authcore.models.base import utcnow
from authcore.models.refresh_token import RefreshToken
from authcore.models.user import User

from tests.factories import BaseFactory
from tests.helpers.auth import DEFAULT_PASSWORD, password_hash


class UserFactory(BaseFactory):
    """
    Build persisted :class:`authcore.models.user.User` instances.

    Notes
    -----
    - ``password`` (post-generation) re-hashes only when a non-default value
      is passed; the default hash is cached across tests.
    """

    class Meta:
        model = User

    id = None  # let autoincrement handle it
    email = factory.Sequence(lambda n: f"user{n}@example.com")
    username = factory.Sequence(lambda n: f"user{n}")
    active = True
    email_verified_at = None
    password_hash = factory.LazyFunction(password_hash)

    @factory.post_generation
    def password(obj, create, extracted, **kwargs):
        """Set password using model setter (ensures hashing)."""
        if extracted and extracted != DEFAULT_PASSWORD:
            obj.password = extracted


class RefreshTokenFactory(BaseFactory):
    """Build persisted refresh records (hash only; no matching raw secret)."""

    class Meta:
        model = RefreshToken

    id = None
    token_hash = factory.Sequence(lambda n: f"{n:064x}")
    user_id = factory.LazyFunction(lambda: UserFactory().id)
    expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(days=30))
    session_id = factory.Faker("uuid4")
    session_expires_at = factory.LazyFunction(lambda: utcnow() + timedelta(days=60))
