"""
AccountService
==============

Operations an authenticated user performs on their own account, plus the
public lookups the sign-up form relies on:

- Profile retrieval (own and public)
- Username availability
- Password change (re-hash through the credential hasher)
- Account deletion (refresh tokens purged)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from accounts.repositories.user import UserRepository
from accounts.services._shared.base import BaseService, utcnow
from accounts.services._shared.dto import AuthenticatedUser, UserOut
from accounts.services._shared.errors import NotFoundError, UnauthorizedError
from accounts.services._shared.ports import CredentialHasher, RefreshTokenStore

log = logging.getLogger(__name__)


class AccountService(BaseService):
    """
    Application service for a user's own account.

    :param hasher: Password hasher used for verification and re-hashing.
    :param refresh_store: Store purged when the account is deleted.
    :param clock: Source of "now".
    """

    def __init__(
        self,
        *,
        hasher: CredentialHasher,
        refresh_store: RefreshTokenStore,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        super().__init__(clock=clock)
        self.hasher = hasher
        self.refresh_store = refresh_store

    # --------------------------------------------------------------------- #
    # Retrieval
    # --------------------------------------------------------------------- #

    def get_profile(self, actor: AuthenticatedUser) -> UserOut:
        """
        Return the caller's own profile.

        :raises NotFoundError: If the account was deleted after the token was issued.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(actor.user_id)
            if user is None:
                raise NotFoundError("User", actor.user_id)
            return self.to_user_out(user)

    def get_public_profile(self, username: str) -> UserOut:
        """
        Return the profile of ``username``.

        :raises NotFoundError: When no such user exists.
        """
        with self.ro_uow() as uow:
            user = uow.users.get_by_username(username)
            if user is None:
                raise NotFoundError("User", username)
            return self.to_user_out(user)

    def is_username_available(self, username: str) -> bool:
        with self.ro_uow() as uow:
            return not uow.users.exists_by_username(username)

    # --------------------------------------------------------------------- #
    # Password lifecycle
    # --------------------------------------------------------------------- #

    def change_password(
        self,
        actor: AuthenticatedUser,
        current_password: str,
        new_password: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """
        Replace the caller's password after verifying the current one.

        Existing sessions are kept.

        :param actor: Authenticated caller.
        :param current_password: Password currently on file.
        :param new_password: Replacement password.
        :param cancel: Optional shutdown signal forwarded to the hasher.
        :raises NotFoundError: If the account no longer exists.
        :raises UnauthorizedError: If ``current_password`` does not match.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(actor.user_id)
            if user is None:
                raise NotFoundError("User", actor.user_id)
            digest = user.password_hash

        if not self.hasher.verify(current_password, digest, cancel=cancel):
            log.warning(
                "account.password_change_rejected",
                extra={"event": "account.password_change", "user_id": actor.user_id,
                       "reason": "wrong current password"},
            )
            raise UnauthorizedError("Current password is incorrect.")

        new_digest = self.hasher.hash(new_password, cancel=cancel)

        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get(actor.user_id)
            if user is None:
                raise NotFoundError("User", actor.user_id)
            repo.update_password_hash(user, new_digest)

        log.info(
            "account.password_changed",
            extra={"event": "account.password_change", "user_id": actor.user_id},
        )

    # --------------------------------------------------------------------- #
    # Deletion
    # --------------------------------------------------------------------- #

    def delete_account(
        self,
        actor: AuthenticatedUser,
        password: str,
        *,
        cancel: threading.Event | None = None,
    ) -> None:
        """
        Permanently delete the caller's account.

        The user row goes first (relational refresh tokens cascade with it);
        the refresh store is then purged so no other backend keeps records
        for the removed account.

        :raises NotFoundError: If the account no longer exists.
        :raises UnauthorizedError: If ``password`` does not match.
        """
        with self.ro_uow() as uow:
            user = uow.users.get(actor.user_id)
            if user is None:
                raise NotFoundError("User", actor.user_id)
            digest = user.password_hash

        if not self.hasher.verify(password, digest, cancel=cancel):
            log.warning(
                "account.delete_rejected",
                extra={"event": "account.delete", "user_id": actor.user_id,
                       "reason": "wrong password"},
            )
            raise UnauthorizedError("Password is incorrect.")

        with self.rw_uow() as uow:
            repo: UserRepository = uow.users
            user = repo.get(actor.user_id)
            if user is None:
                raise NotFoundError("User", actor.user_id)
            repo.delete(user)

        purged = self.refresh_store.purge_user(actor.user_id)
        log.info(
            "account.deleted purged_tokens=%s",
            purged,
            extra={"event": "account.delete", "user_id": actor.user_id},
        )
