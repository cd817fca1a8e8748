"""Field rules shared by several schemas."""

from __future__ import annotations

import re

from marshmallow import ValidationError, fields, validate

USERNAME_PATTERN = r"^[A-Za-z0-9_]+$"
PASSWORD_MIN_LENGTH = 8
PASSWORD_MAX_LENGTH = 128

_UPPER = re.compile(r"[A-Z]")
_LOWER = re.compile(r"[a-z]")
_DIGIT = re.compile(r"\d")
_CHARACTER_CLASSES = (
    ("an uppercase letter", _UPPER),
    ("a lowercase letter", _LOWER),
    ("a digit", _DIGIT),
)


def validate_password_strength(value: str) -> None:
    """Require at least one upper-case letter, one lower-case letter and one digit."""
    missing = [label for label, pattern in _CHARACTER_CLASSES if not pattern.search(value)]
    if missing:
        raise ValidationError(f"Password must contain {', '.join(missing)}.")


def username_field(**kwargs) -> fields.String:
    return fields.String(
        validate=[
            validate.Length(min=3, max=20),
            validate.Regexp(USERNAME_PATTERN, error="Only letters, digits and underscores are allowed."),
        ],
        **kwargs,
    )


def new_password_field(**kwargs) -> fields.String:
    return fields.String(
        validate=[
            validate.Length(min=PASSWORD_MIN_LENGTH, max=PASSWORD_MAX_LENGTH),
            validate_password_strength,
        ],
        **kwargs,
    )
