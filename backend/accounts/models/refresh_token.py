"""Refresh token model: server-side state of the single-use refresh chain."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from accounts.core.extensions import db
from accounts.services._shared.ports import RefreshTokenRecord

from .base import ReprMixin, UTCDateTime

if TYPE_CHECKING:
    from .user import User


class RefreshToken(ReprMixin, db.Model):
    """
    Stored refresh token.

    Only the SHA-256 digest of the value is persisted. ``revoked_at`` is set
    exactly once, by the rotation that consumes the token or by an explicit
    revocation; rows disappear only through the user delete cascade.
    """

    __tablename__ = "refresh_tokens"

    id: Mapped[str] = mapped_column(String(32), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    token_hash: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    expires_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)
    revoked_at: Mapped[datetime | None] = mapped_column(UTCDateTime(), nullable=True)
    replaced_by_token_id: Mapped[str | None] = mapped_column(
        ForeignKey("refresh_tokens.id", ondelete="SET NULL"), nullable=True
    )

    user: Mapped[User] = relationship(back_populates="refresh_tokens")

    __table_args__ = (Index("ix_refresh_tokens_user_id_expires_at", "user_id", "expires_at"),)

    # -------------------- Derived state --------------------

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_active(self, now: datetime) -> bool:
        return not self.is_revoked and not self.is_expired(now)

    # -------------------- Mapping --------------------

    @classmethod
    def from_record(cls, record: RefreshTokenRecord) -> RefreshToken:
        """Build a transient row from a store record."""
        return cls(
            id=record.id,
            user_id=record.user_id,
            token_hash=record.token_hash,
            expires_at=record.expires_at,
            created_at=record.created_at,
            revoked_at=record.revoked_at,
            replaced_by_token_id=record.replaced_by_token_id,
        )

    def to_record(self) -> RefreshTokenRecord:
        """Return an immutable snapshot detached from the session."""
        return RefreshTokenRecord(
            id=self.id,
            user_id=self.user_id,
            token_hash=self.token_hash,
            expires_at=self.expires_at,
            created_at=self.created_at,
            revoked_at=self.revoked_at,
            replaced_by_token_id=self.replaced_by_token_id,
        )
