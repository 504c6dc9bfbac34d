"""
auth/tokens.py -- JWT session tokens and password hashing.

Security design decisions:
  JWT: python-jose with HS256. Tokens carry the username as the "sub" claim
       and an "exp" expiry. jose verifies both the signature and exp on
       decode. Tokens are never stored server-side; there is no revocation,
       a token simply stops validating once exp has passed.

  Secret: held by an explicitly constructed AuthConfig and passed to the
       Authenticator. When SECRET_KEY is not configured, AuthConfig generates
       secrets.token_hex(32) (256 bits) so every process gets its own key.

  Passwords: bcrypt directly, no passlib wrapper. Bcrypt's cost factor makes
       brute-force of low-entropy secrets expensive. The dummy hash computed
       at Authenticator construction enables timing equalization in login()
       so response time does not reveal whether a username exists.

Layer rule: no imports from api/ or catalog/. Import from core/ is allowed.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

import bcrypt
from jose import JWTError, jwt

from core.errors import BadRequest, NotFound, Unauthorized

if TYPE_CHECKING:
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("bookman.auth")

# ---------------------------------------------------------------------------
# Password hashing (bcrypt -- direct usage, no passlib wrapper)
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 12) -> str:
    """Return a bcrypt hash of the given plaintext password.

    bcrypt raises ValueError for input longer than 72 UTF-8 bytes.
    Authenticator.hash_password checks the length first and raises BadRequest.
    """
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Return True if the plaintext password matches the bcrypt hash."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except (ValueError, TypeError):
        return False


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class AuthConfig:
    """Everything the Authenticator needs, fixed at process start."""

    token_lifetime: timedelta
    secret_key: str = field(default_factory=lambda: secrets.token_hex(32), repr=False)
    algorithm: str = "HS256"
    bcrypt_rounds: int = 12

    @classmethod
    def from_settings(cls, settings: Settings) -> AuthConfig:
        lifetime = timedelta(seconds=settings.token_expire_seconds)
        if settings.secret_key:
            return cls(token_lifetime=lifetime, secret_key=settings.secret_key, bcrypt_rounds=settings.bcrypt_rounds)
        return cls(token_lifetime=lifetime, bcrypt_rounds=settings.bcrypt_rounds)


# ---------------------------------------------------------------------------
# Authenticator
# ---------------------------------------------------------------------------


class Authenticator:
    """Proves identity and answers every "who is asking" question.

    Stateless apart from the config: safe to share across request threads.
    """

    def __init__(self, store: UserStore, config: AuthConfig) -> None:
        if store is None:
            raise ValueError("user store can not be None")
        self.store = store
        self.config = config
        # Timing equalization dummy hash, computed once so the first login is
        # not measurably slower than later ones.
        self._dummy_hash = hash_password("bookman_timing_dummy", config.bcrypt_rounds)

    def hash_password(self, plain: str) -> str:
        """Hash a new password with the configured cost factor.

        Raises BadRequest if bcrypt refuses the password (over 72 bytes).
        """
        if len(plain.encode("utf-8")) > 72:
            raise BadRequest("the password must be at most 72 bytes long")
        return hash_password(plain, self.config.bcrypt_rounds)

    def login(self, username: str, password: str) -> str:
        """Check credentials and return a signed access token.

        Raises NotFound when the username is unknown and Unauthorized when the
        password does not match. bcrypt always runs, against the dummy hash
        when the user is missing, so both failures take the same time.
        """
        try:
            user = self.store.get_user_by_username(username)
        except NotFound:
            verify_password(password, self._dummy_hash)
            raise
        if not verify_password(password, user.hashed_password):
            raise Unauthorized("the password is not correct")
        return self.create_access_token(user.username)

    def create_access_token(self, username: str) -> str:
        """Encode a signed JWT for username expiring after the configured lifetime."""
        expire = datetime.now(timezone.utc) + self.config.token_lifetime
        payload = {"sub": username, "exp": expire}
        return jwt.encode(payload, self.config.secret_key, algorithm=self.config.algorithm)

    def validate_token(self, token: str) -> str:
        """Verify a token and return the username it was issued to.

        Any failure -- empty input, bad signature, malformed structure, expired
        exp, missing subject -- raises Unauthorized. Nothing else escapes for
        attacker-controlled input.
        """
        if not token:
            raise Unauthorized("access denied: the token is empty")
        try:
            payload = jwt.decode(token, self.config.secret_key, algorithms=[self.config.algorithm])
        except JWTError as exc:
            logger.warning("can not validate the token of the user: %s", exc)
            raise Unauthorized("access denied: the access token is not valid") from exc
        username = payload.get("sub")
        if not isinstance(username, str) or not username:
            raise Unauthorized("access denied: the access token is not valid")
        return username
