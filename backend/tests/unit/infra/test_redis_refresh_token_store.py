"""Redis-specific behaviour of RedisRefreshTokenStore (fakeredis)."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import fakeredis
import pytest
from accounts.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from accounts.services._shared.ports import RefreshTokenRecord, digest_refresh_value


@pytest.fixture
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


@pytest.fixture
def store(fake_redis):
    return RedisRefreshTokenStore(r=fake_redis)


def _record(token_id: str, user_id: int = 1) -> RefreshTokenRecord:
    now = datetime(2025, 1, 1, 12, 0, 0, 123456, tzinfo=UTC)
    return RefreshTokenRecord(
        id=token_id,
        user_id=user_id,
        token_hash=digest_refresh_value(f"value-{token_id}"),
        expires_at=now + timedelta(days=7),
        created_at=now,
    )


def test_keys_layout(store, fake_redis):
    store.create(_record("a"))

    assert fake_redis.exists("rt:a")
    assert fake_redis.get(f"rt:h:{digest_refresh_value('value-a')}") == b"a"
    assert fake_redis.smembers("rt:u:1") == {b"a"}


def test_records_have_no_ttl(store, fake_redis):
    store.create(_record("a"))
    assert fake_redis.ttl("rt:a") == -1


def test_timestamps_round_trip_with_microseconds(store):
    record = _record("a")
    store.create(record)
    assert store.get("a") == record


def test_list_drops_stale_index_entries(store, fake_redis):
    store.create(_record("a"))
    store.create(_record("b"))
    fake_redis.delete("rt:b")

    assert [rec.id for rec in store.list_for_user(1)] == ["a"]
    assert fake_redis.smembers("rt:u:1") == {b"a"}


def test_corrupt_hash_is_reported(store, fake_redis):
    fake_redis.hset("rt:x", mapping={"user_id": "1", "token_hash": "h"})
    with pytest.raises(ValueError):
        store.get("x")
