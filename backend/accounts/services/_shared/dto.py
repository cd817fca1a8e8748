# comments in English; reST docstrings strict
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from accounts.services.tokens.dto import AccessTokenClaims


@dataclass(frozen=True, slots=True)
class UserOut:
    """
    Public-safe user representation (never carries the password digest).

    :param id: User id.
    :type id: int
    :param username: Unique handle.
    :type username: str
    :param email: Normalized email.
    :type email: str
    :param display_name: Presentation name.
    :type display_name: str
    :param email_verified: Email verification flag.
    :type email_verified: bool
    :param created_at: Creation timestamp, when loaded.
    :type created_at: datetime | None
    """

    id: int
    username: str
    email: str
    display_name: str
    email_verified: bool
    created_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class AuthenticatedUser:
    """
    Identity resolved from a validated access token.

    Passed explicitly into service operations that act on behalf of the
    caller.

    :param user_id: Subject of the token.
    :type user_id: int
    :param username: Username claim.
    :type username: str
    :param email: Email claim.
    :type email: str
    :param email_verified: Email verification claim.
    :type email_verified: bool
    """

    user_id: int
    username: str
    email: str
    email_verified: bool

    @classmethod
    def from_claims(cls, claims: AccessTokenClaims) -> AuthenticatedUser:
        return cls(
            user_id=claims.user_id,
            username=claims.username,
            email=claims.email,
            email_verified=claims.email_verified,
        )
