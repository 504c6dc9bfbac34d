"""Unit tests for auth/tokens.py -- Authenticator login and token validation.

Covers:
- login() followed by validate_token() returns the original username
- Unknown username -> NotFound; wrong password -> Unauthorized
- validate_token("") and garbage input -> Unauthorized
- Expired tokens, tampered signatures, and foreign secrets -> Unauthorized
- Authenticator refuses a missing store
- AuthConfig secret generation and SECRET_KEY pass-through
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from auth.models import User
from auth.tokens import AuthConfig, Authenticator, hash_password, verify_password
from core.config import Settings
from core.errors import BadRequest, NotFound, Unauthorized


@pytest.fixture
def alice(stores, authenticator: Authenticator) -> User:
    user_store, _catalog = stores
    user = User(
        username="alice",
        firstname="Alice",
        lastname="Liddell",
        phone_number="+15550001",
        hashed_password=authenticator.hash_password("pw123"),
    )
    user_store.create_user(user)
    return user


# ---------------------------------------------------------------------------
# Password helpers
# ---------------------------------------------------------------------------


class TestPasswordHashing:
    def test_hash_verifies(self) -> None:
        hashed = hash_password("s3cret", rounds=4)
        assert hashed != "s3cret"
        assert verify_password("s3cret", hashed)
        assert not verify_password("other", hashed)

    def test_hashes_are_salted(self) -> None:
        assert hash_password("same", rounds=4) != hash_password("same", rounds=4)

    def test_malformed_hash_is_false_not_error(self) -> None:
        assert verify_password("anything", "not-a-bcrypt-hash") is False

    def test_over_72_bytes_is_bad_request(self, authenticator: Authenticator) -> None:
        with pytest.raises(BadRequest, match="72 bytes"):
            authenticator.hash_password("\u00e9" * 40)

    def test_exactly_72_bytes_hashes(self, authenticator: Authenticator) -> None:
        hashed = authenticator.hash_password("\u00e9" * 36)
        assert verify_password("\u00e9" * 36, hashed)


# ---------------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------------


class TestLogin:
    def test_login_then_validate_returns_username(self, authenticator: Authenticator, alice: User) -> None:
        token = authenticator.login("alice", "pw123")
        assert authenticator.validate_token(token) == "alice"

    def test_token_is_three_segment_jwt(self, authenticator: Authenticator, alice: User) -> None:
        token = authenticator.login("alice", "pw123")
        assert token.count(".") == 2

    def test_unknown_user_raises_not_found(self, authenticator: Authenticator) -> None:
        with pytest.raises(NotFound):
            authenticator.login("nobody", "pw123")

    def test_wrong_password_raises_unauthorized(self, authenticator: Authenticator, alice: User) -> None:
        with pytest.raises(Unauthorized):
            authenticator.login("alice", "wrong")

    def test_missing_store_rejected(self) -> None:
        with pytest.raises(ValueError):
            Authenticator(None, AuthConfig(token_lifetime=timedelta(minutes=10), bcrypt_rounds=4))


# ---------------------------------------------------------------------------
# Token validation
# ---------------------------------------------------------------------------


class TestValidateToken:
    def test_empty_token(self, authenticator: Authenticator) -> None:
        with pytest.raises(Unauthorized, match="empty"):
            authenticator.validate_token("")

    @pytest.mark.parametrize("garbage", ["abc", "a.b.c", "....", "Bearer", "eyJhbGciOiJIUzI1NiJ9.e30"])
    def test_malformed_token(self, authenticator: Authenticator, garbage: str) -> None:
        with pytest.raises(Unauthorized):
            authenticator.validate_token(garbage)

    def test_expired_token(self, auth_factory, alice: User) -> None:
        """A token whose lifetime has already elapsed must be rejected."""
        expired_auth = auth_factory(lifetime=timedelta(seconds=-30))
        token = expired_auth.login("alice", "pw123")
        with pytest.raises(Unauthorized):
            expired_auth.validate_token(token)

    def test_tampered_signature(self, authenticator: Authenticator, alice: User) -> None:
        token = authenticator.login("alice", "pw123")
        header, payload, signature = token.split(".")
        replacement = "A" if signature[0] != "A" else "B"
        tampered = ".".join([header, payload, replacement + signature[1:]])
        with pytest.raises(Unauthorized):
            authenticator.validate_token(tampered)

    def test_token_from_other_process_rejected(self, auth_factory, authenticator: Authenticator, alice: User) -> None:
        """Each AuthConfig generates its own secret, so another instance's tokens do not verify."""
        other = auth_factory()
        token = other.login("alice", "pw123")
        with pytest.raises(Unauthorized):
            authenticator.validate_token(token)

    def test_token_without_subject(self, authenticator: Authenticator) -> None:
        exp = datetime.now(timezone.utc) + timedelta(minutes=5)
        token = jwt.encode({"exp": exp}, authenticator.config.secret_key, algorithm="HS256")
        with pytest.raises(Unauthorized):
            authenticator.validate_token(token)

    def test_create_access_token_roundtrip(self, authenticator: Authenticator) -> None:
        assert authenticator.validate_token(authenticator.create_access_token("bob")) == "bob"


# ---------------------------------------------------------------------------
# AuthConfig
# ---------------------------------------------------------------------------


class TestAuthConfig:
    def test_generated_secrets_differ(self) -> None:
        a = AuthConfig(token_lifetime=timedelta(minutes=10))
        b = AuthConfig(token_lifetime=timedelta(minutes=10))
        assert a.secret_key != b.secret_key
        assert len(a.secret_key) == 64

    def test_secret_not_in_repr(self) -> None:
        config = AuthConfig(token_lifetime=timedelta(minutes=10))
        assert config.secret_key not in repr(config)

    def test_from_settings_without_secret(self) -> None:
        settings = Settings(_env_file=None, secret_key="", token_expire_seconds=600, bcrypt_rounds=5)
        config = AuthConfig.from_settings(settings)
        assert config.token_lifetime == timedelta(minutes=10)
        assert config.bcrypt_rounds == 5
        assert len(config.secret_key) == 64

    def test_from_settings_uses_configured_secret(self) -> None:
        secret = "x" * 40
        settings = Settings(_env_file=None, secret_key=secret)
        assert AuthConfig.from_settings(settings).secret_key == secret
