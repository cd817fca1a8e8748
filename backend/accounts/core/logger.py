"""
JSON logging for the account service.

Every record is one JSON line on stdout carrying the id of the request that
produced it. Auth code logs through ``extra={...}``; the keys listed in
``EXTRA_KEYS`` become top-level fields and the ones in ``REDACTED_KEYS`` are
masked should a credential ever be passed along by mistake.
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, Response, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
# Checked in order; the first acceptable value wins.
INBOUND_ID_HEADERS = ("X-Request-ID", "X-Correlation-ID")
_SAFE_REQUEST_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

EXTRA_KEYS = ("event", "user_id", "reason", "endpoint", "elapsed_ms", "backend")
REDACTED_KEYS = frozenset({"password", "password_hash", "access_token", "refresh_token"})


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update({key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)})
        payload.update({key: "[redacted]" for key in REDACTED_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def _inbound_request_id() -> str | None:
    for header in INBOUND_ID_HEADERS:
        value = request.headers.get(header, "").strip()
        if _SAFE_REQUEST_ID.match(value):
            return value
    return None


def ensure_request_id() -> str:
    """
    Return the id of the current request.

    A well-formed ``X-Request-ID``/``X-Correlation-ID`` sent by the client is
    reused; anything else is replaced by a fresh UUID4. Outside a request a
    new UUID4 is returned on every call.
    """
    if not has_request_context():
        return str(uuid4())
    request_id = g.get("request_id")
    if request_id is None:
        request_id = _inbound_request_id() or str(uuid4())
        g.request_id = request_id
    return request_id


def _level(value: str | int) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(value.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: str | int = "INFO") -> None:
    """Replace the root handlers with a single JSON handler on stdout."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(_level(level))


def init_app(app: Flask) -> None:
    """Assign a request id before each request and return it in ``X-Request-ID``."""
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _assign_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response: Response) -> Response:
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["JSONFormatter", "configure_logging", "ensure_request_id", "init_app"]
