"""Persisted refresh-credential records."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from authcore.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin


class RefreshToken(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    One live refresh credential, identified by the hash of its raw secret.

    Rows are never updated in place: rotation inserts a child row and deletes
    the parent, so ``DELETE ... WHERE id = :id`` reporting one affected row is
    the proof that a caller consumed the parent.

    Fields
    ------
    token_hash : str
        Hex HMAC-SHA256 of the raw secret. Unique.
    user_id : int
        Owner back-reference (no ORM relationship on purpose).
    expires_at : datetime
        Absolute expiry of this record (issuance + 30 days).
    session_id : str
        Identifier shared by every record of one rotation chain.
    session_expires_at : datetime
        Absolute session hard cap, copied unchanged on rotation.
    """

    __tablename__ = "refresh_tokens"

    token_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    session_id: Mapped[str] = mapped_column(String(36), nullable=False)
    session_expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("token_hash", name="uq_refresh_tokens_token_hash"),
        Index("ix_refresh_tokens_user_id", "user_id"),
        Index("ix_refresh_tokens_session_id", "session_id"),
        Index("ix_refresh_tokens_expires_at", "expires_at"),
    )
