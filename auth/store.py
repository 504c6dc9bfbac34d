"""
auth/store.py -- SQLAlchemy Core persistence layer for user accounts.

Pattern: Repository + Data Mapper (same as catalog/store.py).
UserStore is the repository; _row_to_user is the mapper.
Route and Authenticator code never touches SQL directly.

Security:
  All queries use bound parameters. No f-strings in SQL.

Uniqueness:
  username and phone_number carry UNIQUE constraints. create_user() checks
  the username first so the common case gets a readable message; the
  constraint still catches the race where two signups pass the check at once.

Layer rule: no imports from api/ or catalog/.
"""

from __future__ import annotations

from sqlalchemy import Column, Integer, String, Table, Text, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from auth.models import User
from core.db import create_db_engine, metadata, now_iso
from core.errors import Conflict, NotFound

# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------

users = Table(
    "users",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("username", String(255), nullable=False, unique=True),
    Column("firstname", String(255), nullable=False, server_default=""),
    Column("lastname", String(255), nullable=False, server_default=""),
    Column("phone_number", String(32), unique=True),
    Column("hashed_password", Text, nullable=False),
    Column("created_at", String(32), nullable=False),
)


# ---------------------------------------------------------------------------
# Repository
# ---------------------------------------------------------------------------


class UserStore:
    """Repository for User entities.

    Usage:
        store = UserStore("sqlite:///bookman.db")
        store.create_user(User(username="alice", hashed_password=hash_password("pw123", 12)))
        user = store.get_user_by_username("alice")
        store.close()
    """

    def __init__(self, db_url: str) -> None:
        self.engine: Engine = create_db_engine(db_url)

    def create_user(self, user: User) -> int:
        """Insert a new user and return its assigned database ID.

        Raises Conflict if the username or phone number is already registered.
        """
        with self.engine.connect() as conn:
            taken = conn.execute(select(users.c.id).where(users.c.username == user.username)).first()
            if taken is not None:
                raise Conflict("this username is already taken")
            try:
                result = conn.execute(
                    users.insert().values(
                        username=user.username,
                        firstname=user.firstname,
                        lastname=user.lastname,
                        # Empty phone numbers are stored as NULL so the UNIQUE
                        # constraint only applies to users who supplied one.
                        phone_number=user.phone_number or None,
                        hashed_password=user.hashed_password,
                        created_at=now_iso(),
                    )
                )
            except IntegrityError as exc:
                raise Conflict("this username or phone number is already taken") from exc
            conn.commit()
            return result.inserted_primary_key[0]

    def get_user_by_username(self, username: str) -> User:
        """Look up a user by exact username (case-sensitive). Raises NotFound if absent."""
        with self.engine.connect() as conn:
            row = conn.execute(users.select().where(users.c.username == username)).fetchone()
        if row is None:
            raise NotFound(f"user {username!r} not found")
        return _row_to_user(row)

    def ping(self) -> bool:
        """Return True if the database answers a trivial query."""
        try:
            with self.engine.connect() as conn:
                conn.execute(select(1))
        except SQLAlchemyError:
            return False
        return True

    def close(self) -> None:
        self.engine.dispose()


# ---------------------------------------------------------------------------
# Row mapper (Data Mapper pattern)
# ---------------------------------------------------------------------------


def _row_to_user(row) -> User:
    return User(
        id=row.id,
        username=row.username,
        firstname=row.firstname,
        lastname=row.lastname,
        phone_number=row.phone_number or "",
        hashed_password=row.hashed_password,
        created_at=row.created_at,
    )
