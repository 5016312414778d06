"""Tests for the token service and stored credentials."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from infographic_api.errors import InvalidTokenError, TokenExpiredError, UnauthenticatedError
from infographic_api.models.user import User, hash_password
from infographic_api.services.tokens import (
    TokenService,
    generate_one_time_secret,
    hash_one_time_secret,
)


@pytest.fixture(name="tokens")
def tokens_fixture(settings_factory) -> TokenService:
    return TokenService(settings_factory())


class TestTokenService:
    """Tests for session token issue and verification."""

    def test_issue_and_verify(self, tokens: TokenService):
        token = tokens.issue(42)
        claims = tokens.verify(token)
        assert claims.subject == "42"
        assert isinstance(claims.issued_at, int)

    def test_expiry_matches_setting(self, tokens: TokenService):
        issued = datetime(2026, 1, 1, tzinfo=timezone.utc)
        payload = jwt.get_unverified_claims(tokens.issue(1, now=issued))
        assert payload["exp"] - payload["iat"] == 30 * 24 * 60 * 60

    def test_expired_token(self, tokens: TokenService):
        token = tokens.issue(1, now=datetime.now(timezone.utc) - timedelta(days=31))
        with pytest.raises(TokenExpiredError) as exc_info:
            tokens.verify(token)
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Your token has expired! Please log in again."

    def test_tampered_payload(self, tokens: TokenService):
        header, _, signature = tokens.issue(1).split(".")
        _, forged_payload, _ = tokens.issue(2).split(".")
        with pytest.raises(InvalidTokenError):
            tokens.verify(f"{header}.{forged_payload}.{signature}")

    def test_wrong_secret(self, tokens: TokenService, settings_factory):
        other = TokenService(settings_factory(JWT_SECRET_KEY="a-completely-different-secret-key-value"))
        with pytest.raises(InvalidTokenError):
            tokens.verify(other.issue(1))

    def test_token_errors_are_unauthenticated(self):
        assert issubclass(TokenExpiredError, InvalidTokenError)
        assert issubclass(InvalidTokenError, UnauthenticatedError)

    def test_missing_subject(self, tokens: TokenService):
        token = jwt.encode({"iat": 1, "exp": 4102444800}, tokens.secret_key, algorithm="HS256")
        with pytest.raises(InvalidTokenError):
            tokens.verify(token)


class TestOneTimeSecrets:
    def test_generate_returns_raw_and_hash(self):
        raw, hashed = generate_one_time_secret()
        assert len(raw) == 64
        assert hashed == hash_one_time_secret(raw)
        assert hashed != raw

    def test_secrets_are_unique(self):
        assert generate_one_time_secret()[0] != generate_one_time_secret()[0]


class TestCredentials:
    """Tests for password hashing and staleness checks on the user model."""

    def test_password_is_hashed(self):
        user = User(name="A", email="a@example.com")
        user.set_password("password123", rounds=4)
        assert user.password_hash != "password123"
        assert user.password_hash.startswith("$2")
        assert user.verify_password("password123")
        assert not user.verify_password("password124")

    def test_first_password_does_not_stamp_change(self):
        user = User(name="A", email="a@example.com")
        user.set_password("password123", rounds=4)
        assert user.password_changed_at is None
        assert not user.changed_password_after(0)

    def test_replacing_password_stamps_change_in_the_past(self):
        user = User(name="A", email="a@example.com")
        user.set_password("password123", rounds=4)
        user.set_password("password456", rounds=4)
        assert user.password_changed_at is not None

        now = int(datetime.now(timezone.utc).timestamp())
        assert not user.changed_password_after(now)
        assert user.changed_password_after(now - 60)

    def test_hash_password_honors_rounds(self):
        assert hash_password("password123", rounds=4).startswith("$2b$04$")

    def test_reset_token_lifetime(self):
        user = User(name="A", email="a@example.com")
        raw = user.create_password_reset_token()
        assert user.password_reset_token == hash_one_time_secret(raw)
        remaining = user.password_reset_expires_at - datetime.now(timezone.utc).replace(tzinfo=None)
        assert timedelta(minutes=9) < remaining <= timedelta(minutes=10)

    def test_verification_token_lifetime(self):
        user = User(name="A", email="a@example.com")
        raw = user.create_email_verification_token()
        assert user.email_verification_token == hash_one_time_secret(raw)
        remaining = user.email_verification_expires_at - datetime.now(timezone.utc).replace(tzinfo=None)
        assert timedelta(hours=23) < remaining <= timedelta(hours=24)
