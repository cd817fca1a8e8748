# comments in English; reST docstrings
from __future__ import annotations

from collections.abc import Callable, Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

from accounts.services._shared.errors import (
    InvalidInputError,
    InvalidTokenError,
    TokenExpiredError,
)
from accounts.services._shared.ports import TokenCodec
from accounts.services.tokens.settings import TokenSettings

# Claims the codec owns; caller-supplied values for these are overwritten.
RESERVED_CLAIMS = ("iat", "exp", "iss", "aud")
REQUIRED_CLAIMS = ["sub", "iat", "exp", "iss", "aud"]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PyJWTTokenCodec(TokenCodec):
    """
    HMAC-signed JWT codec built on PyJWT.

    Issuer, audience and algorithm come from the :class:`TokenSettings` given
    at construction; the key is passed per call so rotations and tests can use
    any key without rebuilding the codec.

    :param settings: Token configuration.
    :param clock: Source of "now" used for ``iat``/``exp`` on encode.
    """

    def __init__(
        self,
        settings: TokenSettings,
        *,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.settings = settings
        self._clock = clock

    # ------------------------------------------------------------------ #
    # Encode
    # ------------------------------------------------------------------ #

    def encode(self, claims: Mapping[str, Any], signing_key: str, ttl: timedelta) -> str:
        """
        Sign ``claims`` into a compact JWT.

        :param claims: Application claims; must contain ``sub``.
        :param signing_key: HMAC secret.
        :param ttl: Lifetime added to the issue time.
        :returns: Encoded token.
        :raises InvalidInputError: On an empty key, a non-positive ttl or a
            missing subject.
        """
        if not signing_key:
            raise InvalidInputError("Signing key cannot be empty.")
        if ttl <= timedelta(0):
            raise InvalidInputError("Token lifetime must be positive.")
        if not claims.get("sub"):
            raise InvalidInputError("Token subject is required.")

        issued_at = self._clock()
        payload: dict[str, Any] = {k: v for k, v in claims.items() if k not in RESERVED_CLAIMS}
        payload.update(
            iat=int(issued_at.timestamp()),
            exp=int((issued_at + ttl).timestamp()),
            iss=self.settings.issuer,
            aud=self.settings.audience,
        )
        return jwt.encode(payload, signing_key, algorithm=self.settings.algorithm)

    # ------------------------------------------------------------------ #
    # Decode
    # ------------------------------------------------------------------ #

    def decode(self, token: str, signing_key: str, *, check_expiry: bool = True) -> dict[str, Any]:
        """
        Verify ``token`` and return its claims.

        The header algorithm is compared with the configured one before any
        signature work, so ``none`` or asymmetric substitutions are refused
        outright.

        :param token: Encoded JWT.
        :param signing_key: HMAC secret.
        :param check_expiry: When ``False`` an expired but authentic token is
            accepted (used to recover the subject during refresh).
        :returns: Decoded claims.
        :raises InvalidTokenError: Tampered, malformed or mis-addressed token.
        :raises TokenExpiredError: Expired token while ``check_expiry`` is set.
        """
        if not token or not signing_key:
            raise InvalidTokenError("Token and key are required.")

        try:
            header = jwt.get_unverified_header(token)
        except jwt.PyJWTError as exc:
            raise InvalidTokenError("Malformed token.") from exc

        if header.get("alg") != self.settings.algorithm:
            raise InvalidTokenError("Unexpected token algorithm.")

        try:
            return jwt.decode(
                token,
                signing_key,
                algorithms=[self.settings.algorithm],
                audience=self.settings.audience,
                issuer=self.settings.issuer,
                leeway=0,
                options={"require": REQUIRED_CLAIMS, "verify_exp": check_expiry},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError() from exc
        except jwt.PyJWTError as exc:
            raise InvalidTokenError(f"Token rejected: {exc.__class__.__name__}.") from exc
