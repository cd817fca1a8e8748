"""Transaction boundary contract used by the services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from accounts.repositories import RefreshTokenRepository, UserRepository


class UnitOfWork(ABC):
    """
    One use-case transaction over the account tables.

    Both repositories share the unit's session, so whatever they stage is
    committed or discarded together when the ``with`` block ends.
    """

    users: UserRepository
    refresh_tokens: RefreshTokenRepository

    @abstractmethod
    def __enter__(self) -> UnitOfWork: ...

    @abstractmethod
    def __exit__(self, exc_type, exc, tb) -> None: ...

    @abstractmethod
    def commit(self) -> None: ...

    @abstractmethod
    def rollback(self) -> None: ...
