"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases.
"""

from __future__ import annotations

import os
from datetime import timedelta

import pytest
from accounts.core.config import TestingConfig
from accounts.core.extensions import db as _db  # Flask-SQLAlchemy instance
from accounts.factory import create_app  # application factory under test
from accounts.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from accounts.infra.security.bcrypt_hasher import BcryptCredentialHasher
from accounts.services._shared.ports import InMemoryRefreshTokenStore
from accounts.services.tokens.issuer import TokenIssuer
from accounts.services.tokens.settings import TokenSettings
from accounts.services.tokens.validator import TokenValidator
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker

TEST_SIGNING_KEY = "unit-test-signing-key-0123456789abcdef"


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Cheapest bcrypt cost so hashing stays fast.
    - Refresh tokens live in SQL, next to the users.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    JWT_SECRET_KEY = TEST_SIGNING_KEY
    BCRYPT_ROUNDS = 4
    REFRESH_TOKEN_STORE = "sql"
    REDIS_URL = None
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create the users and refresh_tokens tables once per run."""
    with app.app_context():
        _db.create_all()
        yield _db
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(scope="function")
def session(db, connection):
    """Scoped session whose writes vanish when the test ends.

    The connection holds an outer transaction plus a SAVEPOINT; commits made
    by units of work only release savepoints, and the outer transaction is
    rolled back on teardown. ``db.session`` is swapped for this session so
    services, stores and the Flask test client all see the same data.
    """
    top_trans = connection.begin()

    SessionFactory = sessionmaker(bind=connection, future=True, autoflush=False)
    scoped = scoped_session(SessionFactory)

    nested = connection.begin_nested()

    # A savepoint ended by the app is replaced so the next unit has one too.
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture()
def client(app, session):
    """Flask test client sharing the transactional session."""
    return app.test_client()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Token / credential components ------------------------------------------------


@pytest.fixture(scope="session")
def hasher():
    """Cheap bcrypt hasher (cost 4)."""
    return BcryptCredentialHasher(rounds=4)


@pytest.fixture()
def token_settings():
    return TokenSettings(
        signing_key=TEST_SIGNING_KEY,
        issuer="accounts-api",
        audience="accounts-clients",
        access_ttl=timedelta(minutes=15),
        refresh_ttl=timedelta(days=7),
    )


@pytest.fixture()
def codec(token_settings):
    return PyJWTTokenCodec(token_settings)


@pytest.fixture()
def issuer(codec, token_settings):
    return TokenIssuer(codec, token_settings)


@pytest.fixture()
def validator(codec, token_settings):
    return TokenValidator(codec, token_settings)


@pytest.fixture()
def memory_store():
    return InMemoryRefreshTokenStore()


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(request):
    """Wire Factory Boy's session helper to the transactional session fixture.

    Pure unit tests that never touch the database do not request ``session``
    and skip the wiring.
    """
    from tests.factories import SQLAlchemySession

    if "session" not in request.fixturenames:
        SQLAlchemySession.set(None)
        yield
        return
    SQLAlchemySession.set(request.getfixturevalue("session"))
    yield


# -- Real Flask-SQLAlchemy session -----------------------------------------------
@pytest.fixture()
def file_app(tmp_path):
    """App on a throwaway SQLite file, using Flask-SQLAlchemy's own session.

    Nothing is swapped: every request and unit of work gets the session of
    its app context and commits for real, so several threads can contend on
    the same rows.
    """

    class FileDatabaseConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'accounts.db'}"

    app = create_app(FileDatabaseConfig)
    with app.app_context():
        _db.create_all()
    yield app
    with app.app_context():
        _db.session.remove()
        _db.drop_all()
        _db.engine.dispose()
