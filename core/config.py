"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Bookman happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead.

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call. This is
      the official FastAPI dependency injection pattern for config.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. database_host -> DATABASE_HOST). Type coercion and validation are
      built in.

Database:
  The five DATABASE_* variables describe a PostgreSQL server. DATABASE_URL,
  when set, replaces them entirely -- tests and local runs point it at SQLite.

Security notes:
  SECRET_KEY is optional. When empty, the Authenticator generates a random
  key per process, so tokens do not survive a restart. When set, it must be
  at least 32 characters -- HMAC-SHA256 signing relies on key entropy.

Layer rule: core/ is the kernel. This module may not import from api/,
auth/, or catalog/.
"""

import logging
from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL

logger = logging.getLogger("bookman.config")


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    All fields have defaults so Settings() can be instantiated in test
    environments without a real .env file.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Database
    # ------------------------------------------------------------------

    database_host: str = "localhost"
    database_port: int = 5432
    database_name: str = "book_manager"
    database_username: str = "admin"
    database_password: str = "admin"
    # Full SQLAlchemy URL. Empty string means "build from the fields above".
    database_url: str = ""

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    secret_key: str = ""
    token_expire_seconds: int = Field(default=600, gt=0)
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    # ------------------------------------------------------------------
    # HTTP
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    cors_origins: list[str] = ["http://localhost", "http://localhost:3000", "http://127.0.0.1"]

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """Reject short configured keys; leave an empty key for per-process generation."""
        if self.secret_key and len(self.secret_key) < 32:
            raise ValueError("SECRET_KEY must be at least 32 characters.")
        if not self.secret_key:
            logger.info("SECRET_KEY not set; a random key will be generated. Tokens will not survive a restart.")
        return self

    def sqlalchemy_url(self) -> str:
        """Return the database URL the stores connect to.

        URL.create() escapes special characters in the username and password,
        which plain string formatting would not.
        """
        if self.database_url:
            return self.database_url
        return URL.create(
            "postgresql+psycopg2",
            username=self.database_username,
            password=self.database_password,
            host=self.database_host,
            port=self.database_port,
            database=self.database_name,
        ).render_as_string(hide_password=False)


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables.
    """
    return Settings()
