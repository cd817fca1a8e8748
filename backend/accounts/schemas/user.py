"""User resource schemas."""

from __future__ import annotations

from marshmallow import Schema, fields, validate

from .common import PASSWORD_MAX_LENGTH, new_password_field


class UserSchema(Schema):
    """Private representation of the authenticated user."""

    id = fields.Integer(required=True)
    username = fields.String(required=True)
    email = fields.Email(required=True)
    display_name = fields.String(required=True, data_key="displayName")
    email_verified = fields.Boolean(required=True, data_key="emailVerified")
    created_at = fields.DateTime(allow_none=True, data_key="createdAt")


class PublicUserSchema(Schema):
    """Public profile (no email, no verification state)."""

    username = fields.String(required=True)
    display_name = fields.String(required=True, data_key="displayName")
    created_at = fields.DateTime(allow_none=True, data_key="createdAt")


class UsernameAvailabilitySchema(Schema):
    username = fields.String(required=True)
    available = fields.Boolean(required=True)


class PasswordChangeSchema(Schema):
    """Input payload for changing the current password."""

    current_password = fields.String(
        required=True,
        data_key="currentPassword",
        validate=validate.Length(min=1, max=PASSWORD_MAX_LENGTH),
    )
    new_password = new_password_field(required=True, data_key="newPassword")


class DeleteAccountSchema(Schema):
    """Input payload confirming account deletion."""

    password = fields.String(required=True, validate=validate.Length(min=1, max=PASSWORD_MAX_LENGTH))
