"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterSchema,
    RegisterResponseSchema,
    TokenPairSchema,
)
from .user import (
    DeleteAccountSchema,
    PasswordChangeSchema,
    PublicUserSchema,
    UserSchema,
    UsernameAvailabilitySchema,
)

__all__ = [
    "LoginSchema",
    "LogoutSchema",
    "RefreshSchema",
    "RegisterSchema",
    "RegisterResponseSchema",
    "TokenPairSchema",
    "DeleteAccountSchema",
    "PasswordChangeSchema",
    "PublicUserSchema",
    "UserSchema",
    "UsernameAvailabilitySchema",
]
