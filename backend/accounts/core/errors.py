"""
RFC 7807 ``application/problem+json`` responses for the account API.

Every failure leaving the app has the same shape::

    {"type": "about:blank", "title": "Unauthorized", "status": 401,
     "detail": "...", "instance": "/api/v1/auth/login",
     "code": "unauthorized", "request_id": "...", "details": {...}}

``details`` only appears when there is something safe to add (the taken
field of a 409, marshmallow messages of a 422).
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, has_request_context, jsonify, request
from marshmallow import ValidationError as MarshmallowValidationError
from sqlalchemy.exc import IntegrityError, OperationalError
from werkzeug.exceptions import HTTPException

from accounts.core.logger import ensure_request_id
from accounts.services._shared.errors import (
    ConflictError,
    InvalidTokenError,
    NotFoundError,
    OperationCancelledError,
    ServiceError,
    UnauthorizedError,
)

log = logging.getLogger(__name__)

# Client-facing text for every token problem; the precise cause is only logged.
GENERIC_TOKEN_DETAIL = "Invalid or expired token."

STATUS_CODES = {
    HTTPStatus.BAD_REQUEST: "bad_request",
    HTTPStatus.UNAUTHORIZED: "unauthorized",
    HTTPStatus.NOT_FOUND: "not_found",
    HTTPStatus.METHOD_NOT_ALLOWED: "method_not_allowed",
    HTTPStatus.CONFLICT: "conflict",
    HTTPStatus.UNSUPPORTED_MEDIA_TYPE: "unsupported_media_type",
    HTTPStatus.UNPROCESSABLE_ENTITY: "validation_error",
    HTTPStatus.INTERNAL_SERVER_ERROR: "internal_server_error",
    HTTPStatus.SERVICE_UNAVAILABLE: "service_unavailable",
}


def _problem(
    status: int, detail: str, *, code: str | None = None, details: dict[str, Any] | None = None
) -> tuple[Response, int]:
    body: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": status,
        "detail": detail,
        "instance": request.path if has_request_context() else None,
        "code": code or STATUS_CODES.get(HTTPStatus(status), "error"),
        "request_id": ensure_request_id(),
    }
    if details:
        body["details"] = details
    response = jsonify(body)
    response.mimetype = "application/problem+json"
    return response, status


class APIError(Exception):
    """
    An error the HTTP layer renders as a problem document.

    :param message: Client-safe ``detail``.
    :param status_code: HTTP status.
    :param code: Stable snake_case identifier.
    :param details: Optional structured, client-safe payload.
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "bad_request"

    def __init__(self, message: str, *, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequest(APIError):
    pass


class Unauthorized(APIError):
    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"


class NotFound(APIError):
    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"


class Conflict(APIError):
    """409 for a taken unique value; ``field`` names it (``email``/``username``)."""

    status_code = HTTPStatus.CONFLICT
    code = "conflict"

    def __init__(self, message: str, *, field: str | None = None) -> None:
        super().__init__(message, details={"field": field} if field else None)


class ServiceUnavailable(APIError):
    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "service_unavailable"


def translate_service_error(err: ServiceError) -> APIError:
    """
    Map a service-layer error onto its HTTP counterpart.

    Token failures collapse to one generic 401 so clients cannot tell a
    forged token from an expired one. The ``reason`` of an
    :class:`UnauthorizedError` stays in the logs.
    """
    if isinstance(err, UnauthorizedError):
        return Unauthorized(err.message)
    if isinstance(err, InvalidTokenError):
        return Unauthorized(GENERIC_TOKEN_DETAIL)
    if isinstance(err, ConflictError):
        return Conflict(err.detail, field=err.field)
    if isinstance(err, NotFoundError):
        return NotFound(str(err))
    if isinstance(err, OperationCancelledError):
        return ServiceUnavailable("Service is shutting down, retry the request.")
    return BadRequest(str(err) or "Request could not be processed.")


def init_app(app: Flask) -> None:
    """Register the problem+json handlers (4xx logged as warnings, 5xx as errors)."""

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        emit = log.error if err.status_code >= 500 else log.warning
        emit("api.error code=%s status=%s detail=%s", err.code, err.status_code, err.message)
        return _problem(err.status_code, err.message, code=err.code, details=err.details)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        return handle_api_error(translate_service_error(err))

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = err.code or HTTPStatus.INTERNAL_SERVER_ERROR
        if status == HTTPStatus.NOT_FOUND:
            detail = f"Route '{request.path}' not found"
        else:
            detail = (err.description or HTTPStatus(status).phrase).strip()
        emit = log.error if status >= 500 else log.warning
        emit("http.error status=%s detail=%s", status, detail)
        return _problem(status, detail)

    @app.errorhandler(MarshmallowValidationError)
    def handle_validation_error(err: MarshmallowValidationError):
        log.warning("api.validation_failed fields=%s", sorted(err.normalized_messages()))
        return _problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            details={"errors": err.messages},
        )

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err: IntegrityError):
        log.error("db.integrity_error", exc_info=True)
        return _problem(HTTPStatus.CONFLICT, "Resource conflict")

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        log.error("db.operational_error", exc_info=True)
        return _problem(HTTPStatus.SERVICE_UNAVAILABLE, "Service temporarily unavailable")

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        log.error("unhandled_exception", exc_info=True)
        return _problem(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error")
