"""Shared repository plumbing for the account tables.

Repositories only read and stage rows. Opening, committing and rolling back
transactions belongs to the Unit of Work that hands them their session.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, ClassVar, Generic, TypeVar, cast

from sqlalchemy import select
from sqlalchemy.orm import Session

from accounts.core.extensions import db

M = TypeVar("M")  # mapped model handled by the repository


class BaseRepository(Generic[M]):
    """Primary-key access and whitelisted updates for one mapped model.

    Subclasses set ``model`` and, when rows may be edited in place,
    ``updatable`` (attribute names accepted by :meth:`assign_updates`).
    """

    model: type[M]
    updatable: ClassVar[frozenset[str]] = frozenset()

    def __init__(self, session: Session | None = None) -> None:
        """
        :param session: Session of the enclosing Unit of Work. When omitted
            the Flask-scoped ``db.session`` is used.
        """
        self._session = session

    @property
    def session(self) -> Session:
        if self._session is not None:
            return self._session
        return cast(Session, db.session)

    def add(self, instance: M) -> M:
        """Stage ``instance`` and flush so server defaults (ids) are populated."""
        self.session.add(instance)
        self.session.flush()
        return instance

    def get(self, pk: Any) -> M | None:
        stmt = select(self.model).where(getattr(self.model, "id") == pk)
        return cast(M | None, self.session.execute(stmt).scalars().first())

    def delete(self, instance: M) -> None:
        """Delete ``instance``; ORM cascades configured on the model apply."""
        self.session.delete(instance)
        self.session.flush()

    def flush(self) -> None:
        self.session.flush()

    def assign_updates(self, instance: M, fields: Mapping[str, Any]) -> M:
        """Set whitelisted attributes on ``instance`` and flush.

        Assignment goes through ``setattr`` so the model's ``@validates``
        hooks still run.

        :param instance: Persistent row to edit.
        :param fields: Attribute names mapped to new values.
        :returns: The edited row.
        :raises ValueError: If a key is not listed in ``updatable``.
        """
        rejected = sorted(set(fields) - self.updatable)
        if rejected:
            raise ValueError(f"Fields not updatable on {self.model.__name__}: {rejected}")
        for name, value in fields.items():
            setattr(instance, name, value)
        self.session.flush()
        return instance
