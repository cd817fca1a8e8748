"""Repository package exposing persistence-layer access for all models."""

from __future__ import annotations

from accounts.repositories.base import BaseRepository
from accounts.repositories.refresh_token import RefreshTokenRepository
from accounts.repositories.user import UserRepository

__all__ = [
    "BaseRepository",
    "RefreshTokenRepository",
    "UserRepository",
]
