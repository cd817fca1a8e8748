"""Service error translation into RFC 7807 problems."""

from __future__ import annotations

import pytest
from accounts.core.errors import GENERIC_TOKEN_DETAIL, translate_service_error
from accounts.services._shared.errors import (
    ConflictError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    OperationCancelledError,
    TokenExpiredError,
    UnauthorizedError,
)


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (InvalidInputError("bad"), 400, "bad_request"),
        (UnauthorizedError("Invalid email or password.", reason="wrong password"), 401, "unauthorized"),
        (InvalidTokenError("Token rejected: InvalidSignatureError."), 401, "unauthorized"),
        (TokenExpiredError(), 401, "unauthorized"),
        (NotFoundError("User", "ghost"), 404, "not_found"),
        (ConflictError("User", "email", "User with email a@b.c already exists."), 409, "conflict"),
        (OperationCancelledError("stop"), 503, "service_unavailable"),
    ],
)
def test_status_mapping(error, status, code):
    api_error = translate_service_error(error)
    assert api_error.status_code == status
    assert api_error.code == code


def test_token_errors_use_one_generic_detail():
    forged = translate_service_error(InvalidTokenError("Token rejected: InvalidSignatureError."))
    expired = translate_service_error(TokenExpiredError())
    assert forged.message == expired.message == GENERIC_TOKEN_DETAIL


def test_unauthorized_reason_is_not_exposed():
    api_error = translate_service_error(UnauthorizedError("Invalid session.", reason="user not found"))
    assert "user not found" not in api_error.message


def test_conflict_carries_field():
    api_error = translate_service_error(ConflictError("User", "username", "Username bob is already taken."))
    assert api_error.details == {"field": "username"}
