"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .common import PASSWORD_MAX_LENGTH, new_password_field, username_field
from .user import UserSchema


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = username_field(required=True)
    email = fields.Email(required=True, validate=validate.Length(max=254))
    password = new_password_field(required=True)


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = fields.Email(required=True, validate=validate.Length(max=254))
    # Strength rules are not re-checked at login; accounts predate rule changes.
    password = fields.String(required=True, validate=validate.Length(min=1, max=PASSWORD_MAX_LENGTH))


class RefreshSchema(Schema):
    """Input payload for rotating a refresh token."""

    access_token = fields.String(required=True, data_key="accessToken", validate=validate.Length(min=1))
    refresh_token = fields.String(required=True, data_key="refreshToken", validate=validate.Length(min=1))


class LogoutSchema(Schema):
    """Input payload for revoking one refresh token."""

    refresh_token = fields.String(required=True, data_key="refreshToken", validate=validate.Length(min=1))


class TokenPairSchema(Schema):
    """Response payload carrying an access/refresh token pair."""

    access_token = fields.String(required=True, data_key="accessToken")
    refresh_token = fields.String(required=True, data_key="refreshToken")
    expires_in_seconds = fields.Integer(required=True, data_key="expiresInSeconds")


class RegisterResponseSchema(Schema):
    """Response payload for a successful registration."""

    user = fields.Nested(UserSchema, required=True)
    tokens = fields.Nested(TokenPairSchema, required=True)
