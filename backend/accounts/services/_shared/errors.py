"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never depend on Flask or
HTTP. They are the stable contract between the token/credential components,
the stores and the application services.

The translation to HTTP responses (RFC 7807) is handled by
``accounts/core/errors.py`` via ``translate_service_error()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str, *, column: str | None = None) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        Name of the constraint (e.g., 'uq_users_email').
    column : str | None
        ``table.column`` covered by the constraint. SQLite reports unique
        failures by column instead of constraint name.

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    diag = getattr(exc.orig, "diag", None)  # psycopg2
    if getattr(diag, "constraint_name", None) == constraint_name:
        return True
    message = str(exc.orig).lower() if exc.orig is not None else ""
    if constraint_name.lower() in message:
        return True
    return column is not None and f"unique constraint failed: {column.lower()}" in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to ``APIError`` instances.
    """


# --------------------------------------------------------------------------- #
# Error taxonomy
# --------------------------------------------------------------------------- #


class InvalidInputError(ServiceError):
    """Raised for malformed arguments such as an empty password."""

    def __init__(self, message: str = "Invalid input.") -> None:
        super().__init__(message)


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a uniqueness rule is violated.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param field: Name of the conflicting field (e.g., "email").
    :type field: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    field: str
    detail: str

    def __str__(self) -> str:
        return self.detail


class UnauthorizedError(ServiceError):
    """
    Raised for bad credentials or unusable tokens.

    ``message`` is safe to show to clients and deliberately generic;
    ``reason`` records the precise cause for logs only.

    :param message: Client-facing message.
    :type message: str
    :param reason: Internal cause, never rendered in responses.
    :type reason: str | None
    """

    def __init__(self, message: str = "Unauthorized.", *, reason: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.reason = reason or message


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity required by an operation is absent.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"{self.entity} not found: {self.key}"


class OperationCancelledError(ServiceError):
    """Raised when a cancellation signal stops an operation before it commits."""


# --------------------------------------------------------------------------- #
# Token errors
# --------------------------------------------------------------------------- #


class InvalidTokenError(ServiceError):
    """Raised for forged, tampered, malformed or mis-addressed tokens."""

    def __init__(self, message: str = "Invalid token.") -> None:
        super().__init__(message)


class TokenExpiredError(InvalidTokenError):
    """Raised when an otherwise authentic token is past its expiry."""

    def __init__(self, message: str = "Token has expired.") -> None:
        super().__init__(message)
