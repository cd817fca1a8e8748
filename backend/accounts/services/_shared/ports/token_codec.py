from __future__ import annotations

from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Protocol


class TokenCodec(Protocol):
    """Port for encoding and verifying signed, self-contained access tokens."""

    def encode(self, claims: Mapping[str, Any], signing_key: str, ttl: timedelta) -> str:
        """Sign ``claims`` plus issued-at/expiry/issuer/audience into a token string."""
        ...

    def decode(self, token: str, signing_key: str, *, check_expiry: bool = True) -> dict[str, Any]:
        """
        Verify and return the token claims.

        :raises InvalidTokenError: Bad signature, algorithm, structure, issuer
            or audience.
        :raises TokenExpiredError: Only when ``check_expiry`` is true and the
            token is past its expiry.
        """
        ...
