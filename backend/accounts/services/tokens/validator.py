"""Verification of access tokens in normal and refresh mode."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from accounts.services._shared.errors import InvalidTokenError
from accounts.services._shared.ports import TokenCodec
from accounts.services.tokens.dto import AccessTokenClaims
from accounts.services.tokens.settings import TokenSettings


class TokenValidator:
    """
    Validate access tokens issued by :class:`~accounts.services.tokens.issuer.TokenIssuer`.

    ``validate`` is the normal mode used to authenticate requests.
    ``validate_for_refresh`` skips only the expiry check: signature, algorithm,
    issuer and audience are still enforced, so an expired token can name its
    owner but a forged one cannot.
    """

    def __init__(self, codec: TokenCodec, settings: TokenSettings) -> None:
        self.codec = codec
        self.settings = settings

    def validate(self, token: str) -> AccessTokenClaims:
        """
        :raises InvalidTokenError: Forged or malformed token.
        :raises TokenExpiredError: Authentic but expired token.
        """
        payload = self.codec.decode(token, self.settings.signing_key, check_expiry=True)
        return self._to_claims(payload)

    def validate_for_refresh(self, token: str) -> AccessTokenClaims:
        """:raises InvalidTokenError: Forged or malformed token (expiry ignored)."""
        payload = self.codec.decode(token, self.settings.signing_key, check_expiry=False)
        return self._to_claims(payload)

    @staticmethod
    def _to_claims(payload: dict[str, Any]) -> AccessTokenClaims:
        subject = payload.get("sub")
        if not isinstance(subject, str) or not subject.isdigit():
            raise InvalidTokenError("Invalid token subject.")
        username = payload.get("username")
        email = payload.get("email")
        if not isinstance(username, str) or not isinstance(email, str):
            raise InvalidTokenError("Missing identity claims.")
        return AccessTokenClaims(
            user_id=int(subject),
            username=username,
            email=email,
            email_verified=payload.get("email_verified") is True,
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
        )
