"""
Units of Work bound to the Session of the current app context (``db.session()``).

Because every unit of one app context uses the same Session, a unit opened
while another one is active (for instance a refresh store call made during
registration) takes part in the outer transaction instead of starting its own.
"""

from __future__ import annotations

import logging
from contextlib import suppress

from sqlalchemy import event
from sqlalchemy.engine import Connection
from sqlalchemy.exc import InvalidRequestError
from sqlalchemy.orm import Session, SessionTransaction

from accounts.core.extensions import db
from accounts.repositories import RefreshTokenRepository, UserRepository
from accounts.uow.base import UnitOfWork

log = logging.getLogger(__name__)

# Leading SQL keywords refused inside a read-only unit.
WRITE_KEYWORDS = frozenset(
    {"insert", "update", "delete", "merge", "replace", "create", "alter", "drop", "truncate"}
)


class _SessionBound(UnitOfWork):
    def __init__(self) -> None:
        # The concrete Session of this app context, not the scoped_session proxy.
        self.session: Session = db.session()
        self.users = UserRepository(session=self.session)
        self.refresh_tokens = RefreshTokenRepository(session=self.session)


class SQLAlchemyUnitOfWork(_SessionBound):
    """Read-write unit: commit on a clean exit, rollback when the block raises."""

    def __enter__(self) -> SQLAlchemyUnitOfWork:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.rollback()
            return
        try:
            self.commit()
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        self.session.commit()

    def rollback(self) -> None:
        self.session.rollback()


class _WriteGuard:
    """Event hooks that turn any write attempt into a ``RuntimeError``."""

    def __init__(self, session: Session, conn: Connection) -> None:
        self.session = session
        self.conn = conn

    def on_flush(self, session, flush_context, instances) -> None:
        if session.new or session.dirty or session.deleted:
            raise RuntimeError("Read-only UnitOfWork: ORM flush blocked.")

    def on_execute(self, conn, cursor, statement, parameters, context, executemany) -> None:
        keyword = statement.split(None, 1)[0].lower() if statement.strip() else ""
        if keyword in WRITE_KEYWORDS:
            raise RuntimeError(f"Read-only UnitOfWork: SQL statement blocked: {keyword.upper()}")

    def attach(self) -> None:
        event.listen(self.session, "before_flush", self.on_flush)
        event.listen(self.conn, "before_cursor_execute", self.on_execute)

    def detach(self) -> None:
        with suppress(InvalidRequestError):
            event.remove(self.session, "before_flush", self.on_flush)
        with suppress(InvalidRequestError):
            event.remove(self.conn, "before_cursor_execute", self.on_execute)


class SQLAlchemyReadOnlyUnitOfWork(_SessionBound):
    """
    Read-only unit that never commits.

    If no transaction is open it starts one and rolls it back on exit. If one
    is already open it only reads inside it and leaves it untouched.
    """

    def __init__(self) -> None:
        super().__init__()
        self._owned: SessionTransaction | None = None
        self._guard: _WriteGuard | None = None

    def __enter__(self) -> SQLAlchemyReadOnlyUnitOfWork:
        if self.session.in_transaction():
            log.debug("Read-only UnitOfWork joined the open transaction.")
        else:
            self._owned = self.session.begin()
        self._guard = _WriteGuard(self.session, self.session.connection())
        self._guard.attach()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        guard, self._guard = self._guard, None
        if guard is not None:
            guard.detach()
        owned, self._owned = self._owned, None
        if owned is not None:
            # Also clears a transaction left inactive by a blocked flush.
            with suppress(InvalidRequestError):
                owned.rollback()

    def commit(self) -> None:
        raise RuntimeError("Read-only UnitOfWork does not allow commit().")

    def rollback(self) -> None:
        self.session.rollback()
