"""Liveness endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from accounts.api.deps import json_response, timing
from accounts.core.extensions import db

bp = Blueprint("health", __name__)


def _database_ok() -> bool:
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:
        current_app.logger.exception("health.database_unreachable")
        return False
    return True


@bp.get("/health")
@timing
def healthcheck():
    """Report process liveness, database reachability and the refresh store in use."""
    return json_response(
        {
            "status": "ok",
            "db": "ok" if _database_ok() else "fail",
            "refresh_store": current_app.config.get("REFRESH_TOKEN_STORE", "sql"),
        }
    )
