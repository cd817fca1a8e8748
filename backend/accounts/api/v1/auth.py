"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint

from accounts.api.deps import (
    empty_response,
    get_account_service,
    get_auth_service,
    json_body,
    json_response,
    require_auth,
    timing,
)
from accounts.schemas import (
    LoginSchema,
    LogoutSchema,
    RefreshSchema,
    RegisterResponseSchema,
    RegisterSchema,
    TokenPairSchema,
    UserSchema,
)
from accounts.services._shared.dto import AuthenticatedUser
from accounts.services.auth.dto import LoginIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
register_response_schema = RegisterResponseSchema()
login_schema = LoginSchema()
refresh_schema = RefreshSchema()
logout_schema = LogoutSchema()
token_schema = TokenPairSchema()
user_schema = UserSchema()


@bp.post("/register")
@timing
def register():
    """Create an account and return it with its first token pair."""

    data = register_schema.load(json_body())
    result = get_auth_service().register(RegisterIn(**data))
    return json_response({"data": register_response_schema.dump(result)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    data = login_schema.load(json_body())
    tokens = get_auth_service().login(LoginIn(**data))
    return json_response({"data": token_schema.dump(tokens)})


@bp.post("/refresh")
@timing
def refresh():
    """Rotate a refresh token; the presented one can never be used again."""

    data = refresh_schema.load(json_body())
    tokens = get_auth_service().refresh(RefreshIn(**data))
    return json_response({"data": token_schema.dump(tokens)})


@bp.post("/logout")
@require_auth
@timing
def logout(actor: AuthenticatedUser):
    """Revoke the given refresh token of the caller."""

    data = logout_schema.load(json_body())
    get_auth_service().logout(actor, data["refresh_token"])
    return empty_response()


@bp.get("/me")
@require_auth
@timing
def me(actor: AuthenticatedUser):
    """Return the authenticated user profile."""

    user = get_account_service().get_profile(actor)
    return json_response({"data": user_schema.dump(user)})
