from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol


@dataclass(frozen=True, slots=True)
class UserCredentials:
    """
    Read-only view of a user as needed for authentication.

    :ivar id: User identifier.
    :ivar email: Normalized login email.
    :ivar active: Whether the account may authenticate.
    :ivar password_hash: Stored salted adaptive hash.
    :ivar username: Public alias (returned to the caller on login).
    :ivar email_verified_at: Confirmation timestamp, if any.
    """

    id: int
    email: str
    active: bool
    password_hash: str
    username: str = ""
    email_verified_at: datetime | None = None

    def public(self) -> dict[str, object]:
        """Return the caller-safe projection (never the password hash)."""
        return {
            "id": self.id,
            "email": self.email,
            "username": self.username,
            "active": self.active,
            "email_verified": self.email_verified_at is not None,
        }


class UserDirectory(Protocol):
    """Port onto the external user directory (read-only)."""

    def get_by_id(self, user_id: int) -> UserCredentials | None:
        """Fetch a user by id."""
        ...

    def get_by_email(self, email: str) -> UserCredentials | None:
        """Fetch a user by exact (already normalized) email."""
        ...


class InMemoryUserDirectory(UserDirectory):
    """Dictionary-backed directory used by unit tests."""

    def __init__(self, users: list[UserCredentials] | None = None) -> None:
        self._by_id: dict[int, UserCredentials] = {}
        for user in users or []:
            self.put(user)

    def put(self, user: UserCredentials) -> None:
        self._by_id[user.id] = user

    def remove(self, user_id: int) -> None:
        self._by_id.pop(user_id, None)

    def get_by_id(self, user_id: int) -> UserCredentials | None:
        return self._by_id.get(user_id)

    def get_by_email(self, email: str) -> UserCredentials | None:
        return next((u for u in self._by_id.values() if u.email == email), None)
