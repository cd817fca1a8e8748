"""Explicit token configuration shared by the codec, issuer and validator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta


@dataclass(frozen=True, slots=True)
class TokenSettings:
    """
    Token emission and verification configuration.

    :param signing_key: Symmetric secret for the HMAC signature.
    :type signing_key: str
    :param issuer: Expected and emitted ``iss`` claim.
    :type issuer: str
    :param audience: Expected and emitted ``aud`` claim.
    :type audience: str
    :param algorithm: Signing algorithm; the only one accepted on decode.
    :type algorithm: str
    :param access_ttl: Access token lifetime.
    :type access_ttl: timedelta
    :param refresh_ttl: Refresh token lifetime.
    :type refresh_ttl: timedelta
    """

    signing_key: str
    issuer: str
    audience: str
    algorithm: str = "HS256"
    access_ttl: timedelta = timedelta(minutes=15)
    refresh_ttl: timedelta = timedelta(days=7)

    def __repr__(self) -> str:
        # The signing key never appears in logs or tracebacks.
        return (
            f"TokenSettings(issuer={self.issuer!r}, audience={self.audience!r}, "
            f"algorithm={self.algorithm!r}, access_ttl={self.access_ttl!r}, "
            f"refresh_ttl={self.refresh_ttl!r})"
        )

    @property
    def access_ttl_seconds(self) -> int:
        """Access token lifetime in whole seconds."""
        return int(self.access_ttl.total_seconds())
