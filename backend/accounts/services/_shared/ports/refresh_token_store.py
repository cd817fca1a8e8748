from __future__ import annotations

import hashlib
import threading
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum, auto
from typing import Protocol


def digest_refresh_value(value: str) -> str:
    """
    Return the lookup digest of a raw refresh value.

    Stores keep only this SHA-256 hex digest; the raw value is handed to the
    client once and never persisted.
    """
    return hashlib.sha256(value.encode("utf-8")).hexdigest()


class RotationResult(Enum):
    """Outcome of an atomic refresh rotation attempt."""

    OK = auto()
    NOT_FOUND = auto()
    EXPIRED = auto()
    REVOKED = auto()


@dataclass(frozen=True, slots=True)
class RefreshTokenRecord:
    """
    Read-model for a stored refresh token.

    :ivar id: Opaque record identifier.
    :ivar user_id: Owner user id.
    :ivar token_hash: :func:`digest_refresh_value` of the raw value.
    :ivar expires_at: Absolute expiration (UTC).
    :ivar created_at: Issuance time (UTC).
    :ivar revoked_at: Set once when consumed or revoked.
    :ivar replaced_by_token_id: Record that superseded this one on rotation.
    """

    id: str
    user_id: int
    token_hash: str
    expires_at: datetime
    created_at: datetime
    revoked_at: datetime | None = None
    replaced_by_token_id: str | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at

    def is_active(self, now: datetime) -> bool:
        return not self.is_revoked and not self.is_expired(now)


class RefreshTokenStore(Protocol):
    """
    Stateful store for refresh tokens.

    ``rotate`` and ``revoke`` MUST be conditional, atomic updates on the shared
    record: of two callers racing on the same active token only one may win.
    """

    def create(self, record: RefreshTokenRecord) -> None:
        """Persist a brand-new, active refresh token record."""

    def find_by_value(self, user_id: int, value: str) -> RefreshTokenRecord | None:
        """Return the record owned by ``user_id`` whose raw value is ``value``."""

    def rotate(
        self,
        *,
        old_id: str,
        replacement: RefreshTokenRecord,
        now: datetime,
    ) -> RotationResult:
        """
        Atomically revoke ``old_id`` (only while active) and persist ``replacement``.

        Nothing is written unless the result is ``RotationResult.OK``.
        """

    def revoke(self, token_id: str, now: datetime) -> bool:
        """Revoke a single record if it is still unrevoked. :returns: True if this call revoked it."""

    def revoke_all_for_user(self, user_id: int, now: datetime) -> int:
        """
        Revoke every unrevoked record of the given user.

        :returns: Number of records affected.
        """

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        """List all records (any state) owned by ``user_id``, oldest first."""

    def purge_user(self, user_id: int) -> int:
        """Physically delete every record of ``user_id`` (account deletion only)."""


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    In-memory refresh token store with atomic rotation behavior.

    .. note::
       A threading lock makes the compare-and-set atomic within one process;
       suited to tests and single-process development only.
    """

    def __init__(self) -> None:
        self._by_id: dict[str, RefreshTokenRecord] = {}
        self._by_hash: dict[str, str] = {}
        self._by_user: dict[int, list[str]] = {}
        self._lock = threading.Lock()

    # ------------------------- helpers -------------------------

    def _insert(self, record: RefreshTokenRecord) -> None:
        if record.id in self._by_id or record.token_hash in self._by_hash:
            raise ValueError("Refresh token id or value already stored.")
        self._by_id[record.id] = record
        self._by_hash[record.token_hash] = record.id
        self._by_user.setdefault(record.user_id, []).append(record.id)

    # -------------------------- API ----------------------------

    def create(self, record: RefreshTokenRecord) -> None:
        with self._lock:
            self._insert(record)

    def find_by_value(self, user_id: int, value: str) -> RefreshTokenRecord | None:
        with self._lock:
            token_id = self._by_hash.get(digest_refresh_value(value))
            record = self._by_id.get(token_id) if token_id else None
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
        with self._lock:
            current = self._by_id.get(old_id)
            if current is None:
                return RotationResult.NOT_FOUND
            if current.is_revoked:
                return RotationResult.REVOKED
            if current.is_expired(now):
                return RotationResult.EXPIRED

            self._insert(replacement)
            self._by_id[old_id] = replace(
                current, revoked_at=now, replaced_by_token_id=replacement.id
            )
            return RotationResult.OK

    def revoke(self, token_id: str, now: datetime) -> bool:
        with self._lock:
            current = self._by_id.get(token_id)
            if current is None or current.is_revoked:
                return False
            self._by_id[token_id] = replace(current, revoked_at=now)
            return True

    def revoke_all_for_user(self, user_id: int, now: datetime) -> int:
        count = 0
        with self._lock:
            for token_id in self._by_user.get(user_id, []):
                current = self._by_id[token_id]
                if not current.is_revoked:
                    self._by_id[token_id] = replace(current, revoked_at=now)
                    count += 1
        return count

    def list_for_user(self, user_id: int) -> list[RefreshTokenRecord]:
        with self._lock:
            records = [self._by_id[j] for j in self._by_user.get(user_id, [])]
        return sorted(records, key=lambda rec: (rec.created_at, rec.id))

    def purge_user(self, user_id: int) -> int:
        with self._lock:
            ids = self._by_user.pop(user_id, [])
            for token_id in ids:
                record = self._by_id.pop(token_id)
                self._by_hash.pop(record.token_hash, None)
            return len(ids)
