# accounts/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from accounts.services._shared.dto import UserOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param username: Public handle (unique).
    :type username: str
    :param email: Login email (unique, normalized).
    :type email: str
    :param password: Raw password (hashed by the credential hasher).
    :type password: str
    """

    username: str
    email: str
    password: str


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param access_token: Last access token, possibly expired.
    :type access_token: str
    :param refresh_token: Raw refresh value issued with it.
    :type refresh_token: str
    """

    access_token: str
    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens.

    :param access_token: Encoded access JWT.
    :type access_token: str
    :param refresh_token: Opaque refresh value.
    :type refresh_token: str
    :param expires_in_seconds: Access token lifetime.
    :type expires_in_seconds: int
    """

    access_token: str
    refresh_token: str
    expires_in_seconds: int


@dataclass(frozen=True, slots=True)
class RegisterOut:
    """
    Output DTO for registration.

    :param user: Created user.
    :type user: UserOut
    :param tokens: First token pair of the account.
    :type tokens: TokenPairOut
    """

    user: UserOut
    tokens: TokenPairOut
