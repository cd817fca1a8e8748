"""Extension singletons shared across the app: database, migrations, Redis."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

# Constraint names are stable so IntegrityErrors can be matched by name
# (``uq_users_email``, ``uq_users_username``).
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

db: SQLAlchemy = SQLAlchemy(
    metadata=MetaData(naming_convention=NAMING_CONVENTION),
    session_options={"autoflush": False},
)
migrate = Migrate(render_as_batch=True)
redis_client: redis.Redis | None = None


def _connect_redis(url: str) -> redis.Redis:
    client = redis.Redis.from_url(url)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Redis at {url!r} did not answer PING") from exc
    return client


def init_app(app: Flask) -> None:
    """Bind the database and migrations; connect to Redis when ``REDIS_URL`` is set.

    :param app: Application being configured.
    :raises RuntimeError: If ``REDIS_URL`` is set but unreachable.
    """
    global redis_client

    db.init_app(app)
    # Models must be registered on the metadata before Alembic inspects it.
    from accounts import models  # noqa: F401

    migrate.init_app(app, db)

    redis_url = app.config.get("REDIS_URL")
    redis_client = _connect_redis(redis_url) if redis_url else None
    if redis_client is None:
        app.extensions.pop("redis_client", None)
    else:
        app.extensions["redis_client"] = redis_client


def get_redis() -> redis.Redis:
    """Return the Redis client connected by :func:`init_app`.

    :raises RuntimeError: When no ``REDIS_URL`` was configured.
    """
    if redis_client is None:
        raise RuntimeError("Redis is not configured; set REDIS_URL.")
    return redis_client
