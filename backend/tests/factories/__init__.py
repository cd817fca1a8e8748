"""factory_boy factories bound to the per-test transactional session."""

from __future__ import annotations

import factory


class SQLAlchemySession:
    """Holder for the session of the running test (set by ``conftest``)."""

    _session = None

    @classmethod
    def set(cls, session) -> None:
        cls._session = session

    @classmethod
    def get(cls):
        if cls._session is None:
            raise RuntimeError("Factories need the 'session' fixture in this test.")
        return cls._session


class BaseFactory(factory.alchemy.SQLAlchemyModelFactory):
    """Rows are flushed, never committed; the test transaction discards them."""

    class Meta:
        abstract = True
        sqlalchemy_session_factory = SQLAlchemySession.get
        sqlalchemy_session_persistence = "flush"
