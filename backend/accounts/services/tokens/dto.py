from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from accounts.services._shared.ports import RefreshTokenRecord


@dataclass(frozen=True, slots=True)
class AccessTokenClaims:
    """
    Verified claims carried by an access token.

    :param user_id: Subject (user id).
    :type user_id: int
    :param username: Username at issuance.
    :type username: str
    :param email: Email at issuance.
    :type email: str
    :param email_verified: Email verification flag at issuance.
    :type email_verified: bool
    :param issued_at: ``iat`` claim (UTC).
    :type issued_at: datetime
    :param expires_at: ``exp`` claim (UTC).
    :type expires_at: datetime
    """

    user_id: int
    username: str
    email: str
    email_verified: bool
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True, slots=True)
class IssuedTokenPair:
    """
    Freshly minted credentials for one user.

    :param access_token: Signed access token.
    :type access_token: str
    :param refresh_value: Raw refresh value; returned to the client once.
    :type refresh_value: str
    :param refresh_record: Store record for ``refresh_value`` (holds only its digest).
    :type refresh_record: RefreshTokenRecord
    """

    access_token: str
    refresh_value: str
    refresh_record: RefreshTokenRecord
