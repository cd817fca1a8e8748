"""Minting of access tokens and opaque refresh values."""

from __future__ import annotations

import secrets
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, Protocol
from uuid import uuid4

from accounts.services._shared.ports import (
    RefreshTokenRecord,
    TokenCodec,
    digest_refresh_value,
)
from accounts.services.tokens.dto import IssuedTokenPair
from accounts.services.tokens.settings import TokenSettings

# 64 random bytes -> 512 bits of entropy, ~86 url-safe characters
REFRESH_TOKEN_BYTES = 64


class TokenSubject(Protocol):
    """Anything exposing the user attributes written into access tokens."""

    id: int
    username: str
    email: str
    email_verified: bool


def _utcnow() -> datetime:
    return datetime.now(UTC)


class TokenIssuer:
    """
    Produce access tokens, refresh values and complete token pairs.

    :param codec: Codec used to sign access tokens.
    :param settings: Token configuration (key, lifetimes, issuer/audience).
    :param clock: Source of "now" for refresh record timestamps.
    """

    def __init__(
        self,
        codec: TokenCodec,
        settings: TokenSettings,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.codec = codec
        self.settings = settings
        self._clock = clock

    def access_claims(self, user: TokenSubject) -> dict[str, Any]:
        """Return the application claims for ``user``."""
        return {
            "sub": str(user.id),
            "username": user.username,
            "email": user.email,
            "email_verified": bool(user.email_verified),
        }

    def issue_access_token(self, user: TokenSubject) -> str:
        """Sign a short-lived access token for ``user``."""
        return self.codec.encode(
            self.access_claims(user), self.settings.signing_key, self.settings.access_ttl
        )

    @staticmethod
    def issue_refresh_token() -> str:
        """Return a fresh opaque refresh value from the OS CSPRNG."""
        return secrets.token_urlsafe(REFRESH_TOKEN_BYTES)

    def new_refresh_record(
        self, user_id: int, value: str, *, now: datetime | None = None
    ) -> RefreshTokenRecord:
        """Build an active store record for ``value`` expiring after the refresh ttl."""
        now = now or self._clock()
        return RefreshTokenRecord(
            id=uuid4().hex,
            user_id=user_id,
            token_hash=digest_refresh_value(value),
            expires_at=now + self.settings.refresh_ttl,
            created_at=now,
        )

    def issue_token_pair(
        self, user: TokenSubject, *, now: datetime | None = None
    ) -> IssuedTokenPair:
        """Issue an access token plus a new refresh value and its record."""
        value = self.issue_refresh_token()
        return IssuedTokenPair(
            access_token=self.issue_access_token(user),
            refresh_value=value,
            refresh_record=self.new_refresh_record(user.id, value, now=now),
        )
