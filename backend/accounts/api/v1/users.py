"""User profile and account endpoints."""

from __future__ import annotations

from flask import Blueprint

from accounts.api.deps import (
    empty_response,
    get_account_service,
    json_body,
    json_response,
    require_auth,
    timing,
)
from accounts.schemas import (
    DeleteAccountSchema,
    PasswordChangeSchema,
    PublicUserSchema,
    UsernameAvailabilitySchema,
)
from accounts.services._shared.dto import AuthenticatedUser

bp = Blueprint("users", __name__)

public_user_schema = PublicUserSchema()
availability_schema = UsernameAvailabilitySchema()
password_change_schema = PasswordChangeSchema()
delete_account_schema = DeleteAccountSchema()


@bp.get("/check-username/<string:username>")
@timing
def check_username(username: str):
    """Report whether ``username`` can still be registered."""

    available = get_account_service().is_username_available(username)
    body = availability_schema.dump({"username": username, "available": available})
    return json_response({"data": body})


@bp.put("/me/password")
@require_auth
@timing
def change_password(actor: AuthenticatedUser):
    data = password_change_schema.load(json_body())
    get_account_service().change_password(actor, data["current_password"], data["new_password"])
    return empty_response()


@bp.delete("/me")
@require_auth
@timing
def delete_account(actor: AuthenticatedUser):
    """Delete the caller's account after confirming the password."""

    data = delete_account_schema.load(json_body())
    get_account_service().delete_account(actor, data["password"])
    return empty_response()


@bp.get("/<string:username>")
@timing
def public_profile(username: str):
    """Return the public profile of ``username``."""

    user = get_account_service().get_public_profile(username)
    return json_response({"data": public_user_schema.dump(user)})
