# accounts/services/_shared/base.py
from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime

from accounts.models.user import User
from accounts.services._shared.dto import UserOut
from accounts.uow.sqlalchemy_uow import (
    SQLAlchemyReadOnlyUnitOfWork,
    SQLAlchemyUnitOfWork,
)


def utcnow() -> datetime:
    """Return the current timezone-aware UTC time."""
    return datetime.now(UTC)


class BaseService:
    """
    Base class for application services.

    Responsibilities
    ----------------
    * Provide helpers to run read-only and read-write units of work.
    * Own the service clock so time-dependent rules are testable.
    * Keep services thin, orchestration-only, no web/ORM leakage.

    Notes
    -----
    Services never touch the global session; they always use a Unit of Work.
    """

    def __init__(self, *, clock: Callable[[], datetime] = utcnow) -> None:
        """
        :param clock: Source of "now" (UTC, timezone-aware).
        """
        self._clock = clock

    # -------------------------- UoW helpers ---------------------------------

    def rw_uow(self) -> SQLAlchemyUnitOfWork:
        """
        Create a read-write Unit of Work.

        :returns: Read-write UoW instance.
        :rtype: SQLAlchemyUnitOfWork
        """
        return SQLAlchemyUnitOfWork()

    def ro_uow(self) -> SQLAlchemyReadOnlyUnitOfWork:
        """
        Create a read-only Unit of Work.

        :returns: Read-only UoW instance.
        :rtype: SQLAlchemyReadOnlyUnitOfWork
        """
        return SQLAlchemyReadOnlyUnitOfWork()

    # ----------------------------- Helpers ----------------------------------

    def now_utc(self) -> datetime:
        return self._clock()

    @staticmethod
    def to_user_out(user: User) -> UserOut:
        """
        Map ORM ``User`` to :class:`UserOut`.

        :param user: ORM user instance.
        :returns: Public-safe DTO.
        """
        return UserOut(
            id=user.id,
            username=user.username,
            email=user.email,
            display_name=user.display_name,
            email_verified=bool(user.email_verified),
            created_at=user.created_at,
        )
