"""User model: the authentication identity."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import Boolean, String, UniqueConstraint, false
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from accounts.core.extensions import db

from .base import PKMixin, ReprMixin, TimestampMixin

if TYPE_CHECKING:
    from .refresh_token import RefreshToken


class User(PKMixin, ReprMixin, TimestampMixin, db.Model):
    """
    Authentication identity.

    Fields
    ------
    username : str
        Public handle. Unique, immutable after registration.
    email : str
        Login email. Stored normalized (lowercase, trimmed). Unique.
    password_hash : str
        Digest produced by the credential hasher; never logged or serialized.
    display_name : str
        Presentation name, defaults to the username.
    email_verified : bool
        Carried into access-token claims. ``False`` on registration.
    refresh_tokens : list[RefreshToken]
        Every refresh token issued to the user; deleted with the user.
    """

    __tablename__ = "users"

    # Columns
    username: Mapped[str] = mapped_column(String(50), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    display_name: Mapped[str] = mapped_column(String(100), nullable=False)
    email_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default=false()
    )

    refresh_tokens: Mapped[list[RefreshToken]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="RefreshToken.created_at",
    )

    # Constraints (unique constraints double as lookup indexes)
    __table_args__ = (
        UniqueConstraint("email", name="uq_users_email"),
        UniqueConstraint("username", name="uq_users_username"),
    )

    @validates("email")
    def _normalize_email(self, key: str, value: str) -> str:
        """Store emails lowercased and trimmed; reject values without a domain."""
        email = value.strip().lower() if isinstance(value, str) else ""
        local, _, domain = email.partition("@")
        if not local or "." not in domain:
            raise ValueError("Email format looks invalid.")
        return email

    @validates("username")
    def _normalize_username(self, key: str, value: str) -> str:
        username = value.strip() if isinstance(value, str) else ""
        if not username:
            raise ValueError("Username is required.")
        return username
