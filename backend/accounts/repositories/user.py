"""User repository for persistence and lookup utilities."""

from __future__ import annotations

from typing import cast

from sqlalchemy import or_, select

from accounts.models.user import User
from accounts.repositories.base import BaseRepository


class UserRepository(BaseRepository[User]):
    """Persistence-only repository for :class:`User`.

    It NEVER hashes passwords or issues tokens; it only stores what services
    hand over.
    """

    model = User
    # username and email are fixed once registered
    updatable = frozenset({"display_name", "password_hash", "email_verified"})

    # ---------------------------- Lookup helpers ----------------------------

    def get_by_email(self, email: str) -> User | None:
        """Fetch a user by email (case-insensitive).

        :param email: Email address to normalise and search.
        :type email: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.email == email.lower().strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def get_by_username(self, username: str) -> User | None:
        """Fetch a user by exact username.

        :param username: Username to search (trimmed).
        :type username: str
        :returns: User instance or ``None`` when not found.
        :rtype: User | None
        """
        stmt = select(User).where(User.username == username.strip())
        result = self.session.execute(stmt).scalars().first()
        return cast(User | None, result)

    def find_by_email_or_username(self, email: str, username: str) -> list[User]:
        """Return every user whose email or username matches.

        At most two rows can match because both columns are unique.

        :param email: Email address (normalised before comparing).
        :param username: Username (trimmed before comparing).
        :returns: Matching users, possibly empty.
        :rtype: list[User]
        """
        stmt = select(User).where(
            or_(User.email == email.lower().strip(), User.username == username.strip())
        )
        return list(self.session.execute(stmt).scalars().all())

    def exists_by_username(self, username: str) -> bool:
        """Return ``True`` when the username is already taken."""
        stmt = select(User.id).where(User.username == username.strip())
        return bool(self.session.execute(stmt).first())

    # ---------------------------- Credential ops ----------------------------

    def update_password_hash(self, user: User, password_hash: str) -> None:
        """Store a new password digest and flush.

        :param user: Persistent user.
        :param password_hash: Digest produced by the credential hasher.
        """
        self.assign_updates(user, {"password_hash": password_hash})
