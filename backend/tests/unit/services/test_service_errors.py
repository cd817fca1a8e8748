"""Constraint matching on IntegrityErrors from different backends."""

from __future__ import annotations

from accounts.services._shared.errors import violates
from sqlalchemy.exc import IntegrityError


class _Diag:
    constraint_name = "uq_users_email"


class _PgError(Exception):
    diag = _Diag()


def _integrity(orig: Exception) -> IntegrityError:
    return IntegrityError("INSERT INTO users ...", {}, orig)


def test_matches_postgres_diagnostics():
    exc = _integrity(_PgError("duplicate key value violates unique constraint"))
    assert violates(exc, "uq_users_email")
    assert not violates(exc, "uq_users_username")


def test_matches_constraint_name_in_message():
    exc = _integrity(Exception('duplicate key value violates unique constraint "uq_users_username"'))
    assert violates(exc, "uq_users_username")


def test_matches_sqlite_column_message():
    exc = _integrity(Exception("UNIQUE constraint failed: users.email"))
    assert violates(exc, "uq_users_email", column="users.email")
    assert not violates(exc, "uq_users_email")
    assert not violates(exc, "uq_users_username", column="users.username")
