"""Refresh token repository with conditional (compare-and-set) revocation."""

from __future__ import annotations

from datetime import datetime
from typing import cast

from sqlalchemy import delete, select, update
from sqlalchemy.engine import CursorResult

from accounts.models.refresh_token import RefreshToken
from accounts.repositories.base import BaseRepository


class RefreshTokenRepository(BaseRepository[RefreshToken]):
    """Persistence-only repository for :class:`RefreshToken` rows."""

    model = RefreshToken

    def get_by_hash(self, user_id: int, token_hash: str) -> RefreshToken | None:
        """Fetch the row owned by ``user_id`` with the given value digest."""
        stmt = select(RefreshToken).where(
            RefreshToken.user_id == user_id, RefreshToken.token_hash == token_hash
        )
        result = self.session.execute(stmt).scalars().first()
        return cast(RefreshToken | None, result)

    def list_for_user(self, user_id: int) -> list[RefreshToken]:
        """Return all rows of ``user_id`` ordered by issuance."""
        stmt = (
            select(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .order_by(RefreshToken.created_at.asc(), RefreshToken.id.asc())
        )
        return list(self.session.execute(stmt).scalars().all())

    def revoke_if_active(
        self, token_id: str, now: datetime, *, replaced_by: str | None = None
    ) -> bool:
        """Set ``revoked_at`` only while the row is active.

        Issued as a single conditional ``UPDATE``; the database serializes
        concurrent callers on the row so exactly one sees ``rowcount == 1``.

        :param token_id: Row id.
        :param now: Revocation time, also the expiry cut-off.
        :param replaced_by: Successor id recorded on rotation.
        :returns: ``True`` if this call revoked the row.
        """
        values: dict[str, object] = {"revoked_at": now}
        if replaced_by is not None:
            values["replaced_by_token_id"] = replaced_by
        stmt = (
            update(RefreshToken)
            .where(
                RefreshToken.id == token_id,
                RefreshToken.revoked_at.is_(None),
                RefreshToken.expires_at > now,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[object], self.session.execute(stmt))
        return result.rowcount == 1

    def revoke_unrevoked(self, token_id: str, now: datetime) -> bool:
        """Revoke a row regardless of expiry, if not already revoked."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.id == token_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[object], self.session.execute(stmt))
        return result.rowcount == 1

    def revoke_all_for_user(self, user_id: int, now: datetime) -> int:
        """Revoke every unrevoked row of ``user_id``. :returns: Rows affected."""
        stmt = (
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id, RefreshToken.revoked_at.is_(None))
            .values(revoked_at=now)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[object], self.session.execute(stmt))
        return int(result.rowcount or 0)

    def delete_all_for_user(self, user_id: int) -> int:
        """Physically delete every row of ``user_id``. :returns: Rows deleted."""
        # Break rotation links first so the self-referencing FK never blocks the delete.
        self.session.execute(
            update(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .values(replaced_by_token_id=None)
            .execution_options(synchronize_session=False)
        )
        stmt = (
            delete(RefreshToken)
            .where(RefreshToken.user_id == user_id)
            .execution_options(synchronize_session=False)
        )
        result = cast(CursorResult[object], self.session.execute(stmt))
        return int(result.rowcount or 0)
