# comments in English; reST docstrings
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime

import redis  # type: ignore[import-untyped]

from accounts.services._shared.ports import (
    RefreshTokenRecord,
    RefreshTokenStore,
    RotationResult,
    digest_refresh_value,
)


def _b(value: bytes | None, default: str = "") -> str:
    return value.decode() if value is not None else default


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store with atomic rotation.

    Layout:

    - ``rt:{id}``: hash with the record fields.
    - ``rt:h:{digest}``: record id for a value digest (equality lookup).
    - ``rt:u:{user_id}``: set of record ids owned by the user.

    Records carry no TTL; they stay until the owning account is purged.

    :param r: A Redis client (already connected).
    """

    r: redis.Redis

    # -------------------- helpers --------------------

    @staticmethod
    def _k(token_id: str) -> str:
        return f"rt:{token_id}"

    @staticmethod
    def _kh(token_hash: str) -> str:
        return f"rt:h:{token_hash}"

    @staticmethod
    def _ku(user_id: int) -> str:
        return f"rt:u:{user_id}"

    @staticmethod
    def _ts(dt: datetime) -> str:
        # Naive values are labelled UTC; stored with microsecond precision.
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=UTC)
        return dt.astimezone(UTC).isoformat()

    @staticmethod
    def _dt(raw: str) -> datetime | None:
        return datetime.fromisoformat(raw) if raw else None

    def _mapping(self, record: RefreshTokenRecord) -> dict[str, str]:
        return {
            "user_id": str(record.user_id),
            "token_hash": record.token_hash,
            "expires_at": self._ts(record.expires_at),
            "created_at": self._ts(record.created_at),
            "revoked_at": self._ts(record.revoked_at) if record.revoked_at else "",
            "replaced_by": record.replaced_by_token_id or "",
        }

    def _record(self, token_id: str, h: dict[bytes, bytes]) -> RefreshTokenRecord:
        expires_at = self._dt(_b(h.get(b"expires_at")))
        created_at = self._dt(_b(h.get(b"created_at")))
        if expires_at is None or created_at is None:
            raise ValueError(f"Corrupt refresh token hash for {token_id!r}")
        return RefreshTokenRecord(
            id=token_id,
            user_id=int(_b(h.get(b"user_id"), "0")),
            token_hash=_b(h.get(b"token_hash")),
            expires_at=expires_at,
            created_at=created_at,
            revoked_at=self._dt(_b(h.get(b"revoked_at"))),
            replaced_by_token_id=_b(h.get(b"replaced_by")) or None,
        )

    def _queue_insert(self, p: redis.client.Pipeline, record: RefreshTokenRecord) -> None:
        p.hset(self._k(record.id), mapping=self._mapping(record))
        p.set(self._kh(record.token_hash), record.id)
        p.sadd(self._ku(record.user_id), record.id)

    def get(self, token_id: str) -> RefreshTokenRecord | None:
        """Fetch a single record snapshot (if present)."""
        h = self.r.hgetall(self._k(token_id))
        return self._record(token_id, h) if h else None

    # -------------------- API ------------------------

    def create(self, record: RefreshTokenRecord) -> None:
        """Insert the record before its value is handed to the client."""
        with self.r.pipeline(transaction=True) as p:
            self._queue_insert(p, record)
            p.execute()

    def find_by_value(self, user_id: int, value: str) -> RefreshTokenRecord | None:
        token_id = self.r.get(self._kh(digest_refresh_value(value)))
        if not token_id:
            return None
        record = self.get(_b(token_id))
        if record is None or record.user_id != user_id:
            return None
        return record

    def rotate(
        self,
        *,
        old_id: str,
        replacement: RefreshTokenRecord,
        now: datetime,
    ) -> RotationResult:
        """
        Atomically revoke ``old_id`` and create ``replacement``.

        Uses WATCH/MULTI/EXEC on the old record: if another client touches it
        between the read and the EXEC, the transaction aborts and the loop
        re-reads, at which point the record shows as revoked.
        """
        k_old = self._k(old_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(k_old)
                    h = p.hgetall(k_old)
                    if not h:
                        p.unwatch()
                        return RotationResult.NOT_FOUND
                    current = self._record(old_id, h)
                    if current.is_revoked:
                        p.unwatch()
                        return RotationResult.REVOKED
                    if current.is_expired(now):
                        p.unwatch()
                        return RotationResult.EXPIRED

                    p.multi()
                    p.hset(k_old, mapping={"revoked_at": self._ts(now), "replaced_by": replacement.id})
                    self._queue_insert(p, replacement)
                    p.execute()
                return RotationResult.OK
            except redis.WatchError:
                # Concurrent modification detected; re-read the record
                continue

    def revoke(self, token_id: str, now: datetime) -> bool:
        key = self._k(token_id)
        while True:
            try:
                with self.r.pipeline() as p:
                    p.watch(key)
                    h = p.hgetall(key)
                    if not h or _b(h.get(b"revoked_at")):
                        p.unwatch()
                        return False
                    p.multi()
                    p.hset(key, "revoked_at", self._ts(now))
                    p.execute()
                return True
            except redis.WatchError:
                continue

    def revoke_all_for_user(self, user_id: int, now: datetime) -> int:
        return sum(1 for record in self.list_for_user(user_id) if self.revoke(record.id, now))

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        key_u = self._ku(user_id)
        records: list[RefreshTokenRecord] = []
        stale: list[str] = []
        for member in self.r.smembers(key_u):
            token_id = _b(member)
            record = self.get(token_id)
            if record is None:
                stale.append(token_id)
            else:
                records.append(record)
        if stale:
            # Index entries whose hash is gone
            self.r.srem(key_u, *stale)
        return sorted(records, key=lambda rec: (rec.created_at, rec.id))

    def purge_user(self, user_id: int) -> int:
        records = self.list_for_user(user_id)
        with self.r.pipeline(transaction=True) as p:
            for record in records:
                p.delete(self._k(record.id), self._kh(record.token_hash))
            p.delete(self._ku(user_id))
            p.execute()
        return len(records)
