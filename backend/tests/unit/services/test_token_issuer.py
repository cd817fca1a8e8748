"""Unit tests for TokenIssuer and TokenValidator."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

import pytest
from accounts.infra.jwt.pyjwt_token_codec import PyJWTTokenCodec
from accounts.services._shared.errors import InvalidTokenError, TokenExpiredError
from accounts.services._shared.ports import digest_refresh_value
from accounts.services.tokens.issuer import TokenIssuer
from accounts.services.tokens.validator import TokenValidator


@dataclass
class _Subject:
    id: int = 42
    username: str = "alice"
    email: str = "alice@example.com"
    email_verified: bool = True


class TestTokenIssuer:
    def test_access_token_round_trips_through_validator(self, issuer, validator):
        claims = validator.validate(issuer.issue_access_token(_Subject()))

        assert claims.user_id == 42
        assert claims.username == "alice"
        assert claims.email == "alice@example.com"
        assert claims.email_verified is True
        assert claims.expires_at - claims.issued_at == timedelta(minutes=15)

    def test_refresh_values_are_unique_and_long(self, issuer):
        values = {issuer.issue_refresh_token() for _ in range(200)}
        assert len(values) == 200
        assert all(len(v) >= 86 for v in values)

    def test_token_pair_record_matches_value(self, issuer):
        now = datetime(2025, 5, 1, tzinfo=UTC)
        pair = issuer.issue_token_pair(_Subject(), now=now)

        record = pair.refresh_record
        assert record.user_id == 42
        assert record.token_hash == digest_refresh_value(pair.refresh_value)
        assert record.token_hash != pair.refresh_value
        assert record.created_at == now
        assert record.expires_at == now + timedelta(days=7)
        assert record.is_active(now)

    def test_each_pair_is_fresh(self, issuer):
        first = issuer.issue_token_pair(_Subject())
        second = issuer.issue_token_pair(_Subject())
        assert first.refresh_value != second.refresh_value
        assert first.refresh_record.id != second.refresh_record.id


class TestTokenValidator:
    def _expired_token(self, token_settings) -> str:
        past = datetime.now(UTC) - timedelta(hours=2)
        codec = PyJWTTokenCodec(token_settings, clock=lambda: past)
        return TokenIssuer(codec, token_settings).issue_access_token(_Subject())

    def test_normal_mode_rejects_expired(self, validator, token_settings):
        with pytest.raises(TokenExpiredError):
            validator.validate(self._expired_token(token_settings))

    def test_refresh_mode_accepts_expired(self, validator, token_settings):
        claims = validator.validate_for_refresh(self._expired_token(token_settings))
        assert claims.user_id == 42

    def test_refresh_mode_still_checks_signature(self, validator, token_settings):
        token = self._expired_token(token_settings)
        header, payload, signature = token.split(".")
        tampered = f"{header}.{payload}.{signature[::-1]}"
        with pytest.raises(InvalidTokenError):
            validator.validate_for_refresh(tampered)

    def test_non_numeric_subject(self, codec, token_settings):
        token = codec.encode(
            {"sub": "abc", "username": "a", "email": "a@example.com"},
            token_settings.signing_key,
            token_settings.access_ttl,
        )
        with pytest.raises(InvalidTokenError):
            TokenValidator(codec, token_settings).validate(token)

    def test_missing_identity_claims(self, codec, token_settings):
        token = codec.encode({"sub": "1"}, token_settings.signing_key, token_settings.access_ttl)
        with pytest.raises(InvalidTokenError):
            TokenValidator(codec, token_settings).validate(token)
