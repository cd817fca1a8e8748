"""
Behavioural tests shared by every RefreshTokenStore backend.

Each test runs against the in-memory store, the Redis store (fakeredis) and
the SQL store (transactional SQLite session). The flows covered:

- create + find_by_value (owner scoped)
- rotate (success, revoked, expired, unknown)
- revoke / revoke_all_for_user
- list_for_user ordering
- purge_user
"""

from __future__ import annotations

import secrets
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import fakeredis
import pytest
from accounts.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from accounts.infra.sqlalchemy.sql_refresh_token_store import SQLAlchemyRefreshTokenStore
from accounts.services._shared.ports import (
    InMemoryRefreshTokenStore,
    RefreshTokenRecord,
    RotationResult,
    digest_refresh_value,
)


def _now() -> datetime:
    """Return a timezone-aware UTC "now" without sub-second noise."""
    return datetime.now(UTC).replace(microsecond=0)


def _record(
    user_id: int, *, created_at: datetime, ttl: timedelta = timedelta(days=7)
) -> tuple[str, RefreshTokenRecord]:
    value = secrets.token_urlsafe(64)
    record = RefreshTokenRecord(
        id=uuid4().hex,
        user_id=user_id,
        token_hash=digest_refresh_value(value),
        expires_at=created_at + ttl,
        created_at=created_at,
    )
    return value, record


@pytest.fixture(params=["memory", "redis", "sql"])
def backend(request):
    """Yield ``(store, make_user)``; ``make_user()`` returns a usable user id."""
    if request.param == "memory":
        ids = iter(range(1, 1000))
        yield InMemoryRefreshTokenStore(), lambda: next(ids)
    elif request.param == "redis":
        r = fakeredis.FakeRedis()
        r.flushall()
        ids = iter(range(1, 1000))
        yield RedisRefreshTokenStore(r=r), lambda: next(ids)
    else:
        from tests.factories import SQLAlchemySession
        from tests.factories.user import UserFactory

        session = request.getfixturevalue("session")
        SQLAlchemySession.set(session)
        yield SQLAlchemyRefreshTokenStore(), lambda: UserFactory().id


@pytest.fixture()
def store(backend):
    return backend[0]


@pytest.fixture()
def make_user(backend):
    return backend[1]


class TestCreateAndFind:
    def test_find_by_value_returns_created_record(self, store, make_user):
        user_id = make_user()
        value, record = _record(user_id, created_at=_now())
        store.create(record)

        found = store.find_by_value(user_id, value)
        assert found is not None
        assert found.id == record.id
        assert found.token_hash == record.token_hash
        assert found.expires_at == record.expires_at
        assert found.is_active(_now())

    def test_find_is_scoped_to_owner(self, store, make_user):
        owner, other = make_user(), make_user()
        value, record = _record(owner, created_at=_now())
        store.create(record)

        assert store.find_by_value(other, value) is None

    def test_unknown_value(self, store, make_user):
        assert store.find_by_value(make_user(), "never-issued") is None

    def test_raw_value_is_not_stored(self, store, make_user):
        user_id = make_user()
        value, record = _record(user_id, created_at=_now())
        store.create(record)
        assert all(rec.token_hash != value for rec in store.list_for_user(user_id))


class TestRotate:
    def test_rotation_revokes_old_and_links_replacement(self, store, make_user):
        user_id = make_user()
        now = _now()
        old_value, old = _record(user_id, created_at=now)
        new_value, new = _record(user_id, created_at=now)
        store.create(old)

        assert store.rotate(old_id=old.id, replacement=new, now=now) is RotationResult.OK

        old_after = store.find_by_value(user_id, old_value)
        assert old_after.is_revoked
        assert old_after.replaced_by_token_id == new.id
        assert store.find_by_value(user_id, new_value).is_active(now)

    def test_second_rotation_of_same_token_loses(self, store, make_user):
        user_id = make_user()
        now = _now()
        _, old = _record(user_id, created_at=now)
        _, first = _record(user_id, created_at=now)
        second_value, second = _record(user_id, created_at=now)
        store.create(old)

        assert store.rotate(old_id=old.id, replacement=first, now=now) is RotationResult.OK
        assert store.rotate(old_id=old.id, replacement=second, now=now) is RotationResult.REVOKED
        # The losing replacement was never persisted
        assert store.find_by_value(user_id, second_value) is None
        assert len(store.list_for_user(user_id)) == 2

    def test_expired_token_cannot_rotate(self, store, make_user):
        user_id = make_user()
        issued = _now() - timedelta(days=8)
        old_value, old = _record(user_id, created_at=issued)
        _, new = _record(user_id, created_at=_now())
        store.create(old)

        assert store.rotate(old_id=old.id, replacement=new, now=_now()) is RotationResult.EXPIRED
        assert not store.find_by_value(user_id, old_value).is_revoked

    def test_unknown_token(self, store, make_user):
        _, new = _record(make_user(), created_at=_now())
        result = store.rotate(old_id=uuid4().hex, replacement=new, now=_now())
        assert result is RotationResult.NOT_FOUND


class TestRevoke:
    def test_revoke_is_conditional(self, store, make_user):
        user_id = make_user()
        _, record = _record(user_id, created_at=_now())
        store.create(record)

        assert store.revoke(record.id, _now()) is True
        assert store.revoke(record.id, _now()) is False

    def test_revoked_token_cannot_rotate(self, store, make_user):
        user_id = make_user()
        _, record = _record(user_id, created_at=_now())
        _, new = _record(user_id, created_at=_now())
        store.create(record)
        store.revoke(record.id, _now())

        assert store.rotate(old_id=record.id, replacement=new, now=_now()) is RotationResult.REVOKED

    def test_revoke_all_for_user_only_touches_that_user(self, store, make_user):
        user_id, other = make_user(), make_user()
        for _ in range(3):
            store.create(_record(user_id, created_at=_now())[1])
        _, foreign = _record(other, created_at=_now())
        store.create(foreign)
        store.revoke(store.list_for_user(user_id)[0].id, _now())

        assert store.revoke_all_for_user(user_id, _now()) == 2
        assert all(rec.is_revoked for rec in store.list_for_user(user_id))
        assert not store.list_for_user(other)[0].is_revoked


class TestListAndPurge:
    def test_list_is_oldest_first(self, store, make_user):
        user_id = make_user()
        base = _now()
        records = [_record(user_id, created_at=base + timedelta(seconds=i))[1] for i in (2, 0, 1)]
        for record in records:
            store.create(record)

        listed = store.list_for_user(user_id)
        assert [rec.created_at for rec in listed] == sorted(rec.created_at for rec in records)

    def test_purge_user_removes_every_record(self, store, make_user):
        user_id, other = make_user(), make_user()
        now = _now()
        value, old = _record(user_id, created_at=now)
        _, new = _record(user_id, created_at=now)
        store.create(old)
        store.rotate(old_id=old.id, replacement=new, now=now)
        store.create(_record(other, created_at=now)[1])

        assert store.purge_user(user_id) == 2
        assert store.list_for_user(user_id) == []
        assert store.find_by_value(user_id, value) is None
        assert len(store.list_for_user(other)) == 1
