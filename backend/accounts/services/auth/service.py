# accounts/services/auth/service.py
from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from accounts.models.user import User
from accounts.repositories.user import UserRepository
from accounts.services._shared.base import BaseService, utcnow
from accounts.services._shared.dto import AuthenticatedUser, UserOut
from accounts.services._shared.errors import (
    ConflictError,
    InvalidInputError,
    InvalidTokenError,
    UnauthorizedError,
    violates,
)
from accounts.services._shared.ports import (
    CredentialHasher,
    RefreshTokenStore,
    RotationResult,
)
from accounts.services.auth.dto import (
    LoginIn,
    RefreshIn,
    RegisterIn,
    RegisterOut,
    TokenPairOut,
)
from accounts.services.tokens.dto import IssuedTokenPair
from accounts.services.tokens.issuer import TokenIssuer
from accounts.services.tokens.validator import TokenValidator

log = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid email or password."
INVALID_SESSION = "Invalid or expired session. Please sign in again."

# Verified against when the email is unknown so both login failures cost one bcrypt check.
_DUMMY_PASSWORD = "not-a-real-password-0"


class AuthService(BaseService):
    """
    Authentication lifecycle service (register / login / refresh / logout).

    Access tokens come from :class:`TokenIssuer` and are checked by
    :class:`TokenValidator`; refresh tokens live in a :class:`RefreshTokenStore`
    whose ``rotate`` is a compare-and-set, which is what makes every refresh
    value single-use even under concurrent requests.
    """

    def __init__(
        self,
        *,
        hasher: CredentialHasher,
        issuer: TokenIssuer,
        validator: TokenValidator,
        refresh_store: RefreshTokenStore,
        revoke_all_on_reuse: bool = False,
        dummy_digest: str | None = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param hasher: Password hasher.
        :param issuer: Access/refresh token issuer.
        :param validator: Access token validator.
        :param refresh_store: Stateful refresh token store (atomic rotation).
        :param revoke_all_on_reuse: Revoke every active refresh token of a user
            when one of their already-revoked tokens is replayed.
        :param dummy_digest: Precomputed digest used for unknown-email logins.
        :param clock: Source of "now".
        """
        super().__init__(clock=clock)
        self.hasher = hasher
        self.issuer = issuer
        self.validator = validator
        self.refresh_store = refresh_store
        self.revoke_all_on_reuse = revoke_all_on_reuse
        self._dummy_digest = dummy_digest

    # ------------------------------------------------------------------ #
    # Register
    # ------------------------------------------------------------------ #

    def register(self, dto: RegisterIn, *, cancel: threading.Event | None = None) -> RegisterOut:
        """
        Create an account and its first token pair.

        :param dto: Registration input.
        :param cancel: Optional shutdown signal forwarded to the hasher.
        :returns: Created user and tokens.
        :raises ConflictError: Email (checked first) or username already taken.
        :raises InvalidInputError: Empty password or unusable email/username.
        """
        # Cheap rejection before paying for the hash
        with self.ro_uow() as uow:
            self._ensure_available(uow.users, dto)

        digest = self.hasher.hash(dto.password, cancel=cancel)

        try:
            with self.rw_uow() as uow:
                repo: UserRepository = uow.users
                self._ensure_available(repo, dto)
                try:
                    user = User(
                        username=dto.username,
                        email=dto.email,
                        password_hash=digest,
                        display_name=dto.username.strip(),
                        email_verified=False,
                    )
                except ValueError as exc:
                    raise InvalidInputError(str(exc)) from exc
                repo.add(user)

                user_out = self.to_user_out(user)
                pair = self.issuer.issue_token_pair(user_out, now=self.now_utc())
                # Joins this unit of work: user and refresh token commit together.
                self.refresh_store.create(pair.refresh_record)
        except IntegrityError as exc:
            # Lost a uniqueness race against a concurrent registration
            if violates(exc, "uq_users_email", column="users.email"):
                raise self._email_conflict(dto.email) from exc
            if violates(exc, "uq_users_username", column="users.username"):
                raise self._username_conflict(dto.username) from exc
            raise

        log.info("auth.register", extra={"event": "auth.register", "user_id": user_out.id})
        return RegisterOut(user=user_out, tokens=self._token_pair_out(pair))

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn, *, cancel: threading.Event | None = None) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Earlier sessions are left untouched; every login starts its own
        refresh chain.

        :param dto: Login input.
        :param cancel: Optional shutdown signal forwarded to the hasher.
        :returns: Access/refresh token pair.
        :raises UnauthorizedError: Unknown email or wrong password (same message).
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_email(dto.email)
            user_out = self.to_user_out(user) if user is not None else None
            digest = user.password_hash if user is not None else None

        if user_out is None or digest is None:
            self.hasher.verify(dto.password, self._get_dummy_digest(), cancel=cancel)
            raise self._reject("unknown email", message=INVALID_CREDENTIALS)

        if not self.hasher.verify(dto.password, digest, cancel=cancel):
            raise self._reject("wrong password", message=INVALID_CREDENTIALS, user_id=user_out.id)

        pair = self.issuer.issue_token_pair(user_out, now=self.now_utc())
        self.refresh_store.create(pair.refresh_record)

        log.info("auth.login", extra={"event": "auth.login", "user_id": user_out.id})
        return self._token_pair_out(pair)

    # ------------------------------------------------------------------ #
    # Refresh with atomic rotation
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPairOut:
        """
        Exchange a refresh value for a new token pair, consuming it.

        Security
        --------
        - The access token may be expired but must be authentic; it names the
          user whose refresh token is expected.
        - The refresh record must be active; rotation revokes it with a
          compare-and-set, so of two racing calls exactly one succeeds.

        :param dto: Refresh input.
        :returns: New token pair; the refresh value always differs from the old one.
        :raises UnauthorizedError: For every rejection, with one generic message.
        """
        # 1) Whose token is this? Expiry is ignored, authenticity is not.
        try:
            claims = self.validator.validate_for_refresh(dto.access_token)
        except InvalidTokenError as exc:
            raise self._reject("invalid token claims") from exc

        # 2) The user must still exist
        with self.ro_uow() as uow:
            user = uow.users.get(claims.user_id)
            user_out = self.to_user_out(user) if user is not None else None
        if user_out is None:
            raise self._reject("user not found", user_id=claims.user_id)

        # 3) The refresh value must belong to that user
        record = self.refresh_store.find_by_value(user_out.id, dto.refresh_token)
        if record is None:
            raise self._reject("invalid refresh token", user_id=user_out.id)

        # 4) Single-use enforcement
        now = self.now_utc()
        if not record.is_active(now):
            if record.is_revoked and self.revoke_all_on_reuse:
                revoked = self.refresh_store.revoke_all_for_user(user_out.id, now)
                log.warning(
                    "auth.refresh_reuse_detected revoked=%s",
                    revoked,
                    extra={"event": "auth.refresh_reuse", "user_id": user_out.id},
                )
            raise self._reject("refresh token is expired or revoked", user_id=user_out.id)

        # 5) Revoke-and-replace as one conditional unit
        pair = self.issuer.issue_token_pair(user_out, now=now)
        result = self.refresh_store.rotate(old_id=record.id, replacement=pair.refresh_record, now=now)
        if result is not RotationResult.OK:
            raise self._reject(f"rotation lost ({result.name.lower()})", user_id=user_out.id)

        log.info("auth.refresh", extra={"event": "auth.refresh", "user_id": user_out.id})
        return self._token_pair_out(pair)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, actor: AuthenticatedUser, refresh_token: str) -> bool:
        """
        Revoke one of the caller's refresh tokens.

        Unknown values and values owned by somebody else are ignored so the
        call is idempotent.

        :param actor: Authenticated caller.
        :param refresh_token: Raw refresh value to revoke.
        :returns: ``True`` if this call revoked an active token.
        """
        record = self.refresh_store.find_by_value(actor.user_id, refresh_token)
        if record is None:
            return False
        revoked = self.refresh_store.revoke(record.id, self.now_utc())
        log.info("auth.logout", extra={"event": "auth.logout", "user_id": actor.user_id})
        return revoked

    # ------------------------------------------------------------------ #
    # Helpers
    # ------------------------------------------------------------------ #

    def _ensure_available(self, repo: UserRepository, dto: RegisterIn) -> None:
        """Raise the email conflict before the username conflict."""
        matches = repo.find_by_email_or_username(dto.email, dto.username)
        if not matches:
            return
        email = dto.email.strip().lower()
        if any(u.email == email for u in matches):
            raise self._email_conflict(dto.email)
        raise self._username_conflict(dto.username)

    @staticmethod
    def _email_conflict(email: str) -> ConflictError:
        return ConflictError("User", "email", f"User with email {email.strip().lower()} already exists.")

    @staticmethod
    def _username_conflict(username: str) -> ConflictError:
        return ConflictError("User", "username", f"Username {username.strip()} is already taken.")

    @staticmethod
    def _reject(
        reason: str, *, message: str = INVALID_SESSION, user_id: int | None = None
    ) -> UnauthorizedError:
        log.warning(
            "auth.rejected: %s",
            reason,
            extra={"event": "auth.rejected", "reason": reason, "user_id": user_id},
        )
        return UnauthorizedError(message, reason=reason)

    def _get_dummy_digest(self) -> str:
        if self._dummy_digest is None:
            self._dummy_digest = self.hasher.hash(_DUMMY_PASSWORD)
        return self._dummy_digest

    def _token_pair_out(self, pair: IssuedTokenPair) -> TokenPairOut:
        return TokenPairOut(
            access_token=pair.access_token,
            refresh_token=pair.refresh_value,
            expires_in_seconds=self.issuer.settings.access_ttl_seconds,
        )


__all__ = ["AuthService", "INVALID_CREDENTIALS", "INVALID_SESSION", "UserOut"]
