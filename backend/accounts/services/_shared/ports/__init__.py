"""
accounts.services._shared.ports
===============================

Collection of *ports* (hexagonal interfaces) that define the contracts for
credential hashing, token encoding and refresh-token persistence.

Modules
-------
- :mod:`credential_hasher`:
    Defines :class:`~.CredentialHasher` for salted one-way password hashing.

- :mod:`token_codec`:
    Defines :class:`~.TokenCodec` for signing and verifying access tokens.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.RotationResult` and
    :class:`~.RefreshTokenRecord`, plus the lock-based
    :class:`~.InMemoryRefreshTokenStore`.

Concrete adapters (bcrypt, PyJWT, SQLAlchemy, Redis) live under
``accounts.infra``.
"""

from __future__ import annotations

from .credential_hasher import CredentialHasher
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationResult,
    digest_refresh_value,
)
from .token_codec import TokenCodec

__all__ = [
    "CredentialHasher",
    "TokenCodec",
    "RefreshTokenStore",
    "RefreshTokenRecord",
    "RotationResult",
    "InMemoryRefreshTokenStore",
    "digest_refresh_value",
]
