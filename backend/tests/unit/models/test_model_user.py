"""Tests for the User model."""

from __future__ import annotations

import pytest
from authcore.models.user import User
from sqlalchemy.exc import IntegrityError


class TestUser:
    def test_password_hashing(self, session):
        u = User(email="Test@Example.com", username="tester")
        u.password = "secret123"
        session.add(u)
        session.commit()
        assert u.password_hash != "secret123"
        assert u.verify_password("secret123") is True
        assert u.verify_password("wrong") is False

    def test_password_is_write_only(self):
        u = User(email="a@example.com", username="u1")
        u.password = "x"
        with pytest.raises(AttributeError):
            _ = u.password

    def test_empty_password_rejected(self):
        u = User(email="a@example.com", username="u1")
        with pytest.raises(ValueError):
            u.password = ""

    def test_email_normalized_and_unique(self, session):
        u1 = User(email="  Alice@Example.com ", username="alice")
        u1.password = "pw"
        session.add(u1)
        session.commit()
        assert u1.email == "alice@example.com"

        u2 = User(email="alice@example.com", username="alice2")
        u2.password = "pw"
        session.add(u2)
        with pytest.raises(IntegrityError):
            session.commit()

    @pytest.mark.parametrize("email", ["", "no-at-sign", "user@localhost"])
    def test_invalid_email(self, email):
        with pytest.raises(ValueError):
            User(email=email, username="u")

    def test_blank_username(self):
        with pytest.raises(ValueError):
            User(email="x@example.com", username=" ")

    def test_active_by_default(self, session):
        u = User(email="d@example.com", username="dana")
        u.password = "pw"
        session.add(u)
        session.flush()
        assert u.active is True
        assert u.email_verified_at is None
