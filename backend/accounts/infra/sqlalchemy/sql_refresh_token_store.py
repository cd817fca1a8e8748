# comments in English; reST docstrings
from __future__ import annotations

from datetime import datetime

from accounts.models.refresh_token import RefreshToken
from accounts.services._shared.ports import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationResult,
    digest_refresh_value,
)
from accounts.uow.sqlalchemy_uow import SQLAlchemyReadOnlyUnitOfWork, SQLAlchemyUnitOfWork


class SQLAlchemyRefreshTokenStore(RefreshTokenStore):
    """
    Relational refresh token store.

    Each call runs in its own :class:`SQLAlchemyUnitOfWork`. Because the unit
    of work shares the Flask-scoped session, a call made inside an outer unit
    of work joins that transaction: registration persists the user and its
    first refresh token in the same commit.

    Rotation relies on a conditional ``UPDATE`` (``revoked_at IS NULL AND
    expires_at > now``); the database row lock makes it a compare-and-set
    across processes, not only threads.
    """

    def create(self, record: RefreshTokenRecord) -> None:
        with SQLAlchemyUnitOfWork() as uow:
            uow.refresh_tokens.add(RefreshToken.from_record(record))

    def find_by_value(self, user_id: int, value: str) -> RefreshTokenRecord | None:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            row = uow.refresh_tokens.get_by_hash(user_id, digest_refresh_value(value))
            return row.to_record() if row is not None else None

    def rotate(
        self,
        *,
        old_id: str,
        replacement: RefreshTokenRecord,
        now: datetime,
    ) -> RotationResult:
        with SQLAlchemyUnitOfWork() as uow:
            repo = uow.refresh_tokens
            # Insert first so the successor id satisfies the self-referencing FK.
            repo.add(RefreshToken.from_record(replacement))
            if repo.revoke_if_active(old_id, now, replaced_by=replacement.id):
                return RotationResult.OK

            # Lost: undo the insert and report what the winner left behind.
            uow.rollback()
            current = repo.get(old_id)
            if current is None:
                return RotationResult.NOT_FOUND
            if current.is_revoked:
                return RotationResult.REVOKED
            return RotationResult.EXPIRED

    def revoke(self, token_id: str, now: datetime) -> bool:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.revoke_unrevoked(token_id, now)

    def revoke_all_for_user(self, user_id: int, now: datetime) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.revoke_all_for_user(user_id, now)

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        with SQLAlchemyReadOnlyUnitOfWork() as uow:
            return [row.to_record() for row in uow.refresh_tokens.list_for_user(user_id)]

    def purge_user(self, user_id: int) -> int:
        with SQLAlchemyUnitOfWork() as uow:
            return uow.refresh_tokens.delete_all_for_user(user_id)
