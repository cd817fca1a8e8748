"""Shared API helpers for request parsing and cross-cutting concerns."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, jsonify, request

from accounts.core.errors import Unauthorized
from accounts.core.security import get_components
from accounts.services._shared.dto import AuthenticatedUser
from accounts.services.account.service import AccountService
from accounts.services.auth.service import AuthService

F = TypeVar("F", bound=Callable[..., Any])

BEARER_PREFIX = "bearer "


def get_auth_service() -> AuthService:
    """Build an :class:`AuthService` from the application's auth components."""

    components = get_components()
    return AuthService(
        hasher=components.hasher,
        issuer=components.issuer,
        validator=components.validator,
        refresh_store=components.refresh_store,
        revoke_all_on_reuse=components.revoke_all_on_reuse,
        dummy_digest=components.dummy_digest,
    )


def get_account_service() -> AccountService:
    """Build an :class:`AccountService` from the application's auth components."""

    components = get_components()
    return AccountService(hasher=components.hasher, refresh_store=components.refresh_store)


def bearer_token() -> str:
    """Return the bearer token of the current request.

    :raises Unauthorized: If the ``Authorization`` header is missing or not a
        bearer credential.
    """

    header = request.headers.get("Authorization", "")
    if not header.lower().startswith(BEARER_PREFIX):
        raise Unauthorized("Missing bearer token")
    token = header[len(BEARER_PREFIX):].strip()
    if not token:
        raise Unauthorized("Missing bearer token")
    return token


def require_auth(func: F) -> F:
    """Validate the access token and pass the caller to the view as ``actor``."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        claims = get_components().validator.validate(bearer_token())
        kwargs["actor"] = AuthenticatedUser.from_claims(claims)
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_body() -> dict[str, Any]:
    """Return the JSON object of the request, or an empty mapping."""

    payload = request.get_json(silent=True)
    return payload if isinstance(payload, dict) else {}


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def empty_response(status: int = 204) -> Response:
    return Response(status=status)


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
