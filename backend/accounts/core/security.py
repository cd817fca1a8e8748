"""Construction of the credential and token components shared by all requests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import cast

from flask import Flask, current_app

from accounts.core.config import ConfigurationError, token_settings_from_config
from accounts.core.extensions import get_redis
from accounts.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from accounts.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from accounts.infra.security.bcrypt_hasher import BcryptCredentialHasher
from accounts.infra.sqlalchemy.sql_refresh_token_store import SQLAlchemyRefreshTokenStore
from accounts.services._shared.ports import (
    CredentialHasher,
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
)
from accounts.services.tokens.issuer import TokenIssuer
from accounts.services.tokens.settings import TokenSettings
from accounts.services.tokens.validator import TokenValidator

log = logging.getLogger(__name__)

EXTENSION_KEY = "auth_components"
REFRESH_STORE_BACKENDS = ("sql", "redis", "memory")

# Hashed once at startup; unknown-email logins verify against it.
_DUMMY_PASSWORD = "timing-equalizer-Passw0rd"


@dataclass(frozen=True, slots=True)
class AuthComponents:
    """
    Process-wide, stateless (or internally synchronized) auth building blocks.

    :param settings: Token configuration.
    :param hasher: Password hasher.
    :param issuer: Access/refresh token issuer.
    :param validator: Access token validator.
    :param refresh_store: Refresh token store selected by ``REFRESH_TOKEN_STORE``.
    :param revoke_all_on_reuse: Reuse detection flag.
    :param dummy_digest: Digest verified against when a login email is unknown.
    """

    settings: TokenSettings
    hasher: CredentialHasher
    issuer: TokenIssuer
    validator: TokenValidator
    refresh_store: RefreshTokenStore
    revoke_all_on_reuse: bool
    dummy_digest: str


def build_refresh_store(backend: str) -> RefreshTokenStore:
    """
    Return the refresh token store for ``backend``.

    :raises ConfigurationError: Unknown backend, or ``redis`` without a client.
    """
    backend = (backend or "sql").strip().lower()
    if backend == "sql":
        return SQLAlchemyRefreshTokenStore()
    if backend == "memory":
        return InMemoryRefreshTokenStore()
    if backend == "redis":
        try:
            return RedisRefreshTokenStore(get_redis())
        except RuntimeError as exc:
            raise ConfigurationError("REFRESH_TOKEN_STORE=redis requires REDIS_URL.") from exc
    raise ConfigurationError(
        f"REFRESH_TOKEN_STORE must be one of {REFRESH_STORE_BACKENDS}, got {backend!r}."
    )


def build_components(config) -> AuthComponents:
    """Build every auth component from a Flask config mapping."""
    settings = token_settings_from_config(config)
    try:
        hasher = BcryptCredentialHasher(rounds=int(config.get("BCRYPT_ROUNDS", 12)))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc
    codec = PyJWTTokenCodec(settings)
    return AuthComponents(
        settings=settings,
        hasher=hasher,
        issuer=TokenIssuer(codec, settings),
        validator=TokenValidator(codec, settings),
        refresh_store=build_refresh_store(config.get("REFRESH_TOKEN_STORE", "sql")),
        revoke_all_on_reuse=bool(config.get("REFRESH_REUSE_REVOKES_ALL", False)),
        dummy_digest=hasher.hash(_DUMMY_PASSWORD),
    )


def init_app(app: Flask) -> None:
    """
    Attach :class:`AuthComponents` to ``app.extensions``.

    :raises ConfigurationError: Missing signing secret or other invalid auth
        settings; the application must not start.
    """
    components = build_components(app.config)
    app.extensions[EXTENSION_KEY] = components
    log.info(
        "auth.components_ready",
        extra={"event": "auth.init", "backend": type(components.refresh_store).__name__},
    )


def get_components() -> AuthComponents:
    """Return the components of the current application."""
    components = current_app.extensions.get(EXTENSION_KEY)
    if components is None:
        raise RuntimeError("Auth components are not initialized. Call security.init_app().")
    return cast(AuthComponents, components)
