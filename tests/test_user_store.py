"""Unit tests for auth/store.py -- UserStore persistence.

Covers:
- create_user() / get_user_by_username() round trip, including profile fields
- Duplicate username and duplicate phone number -> Conflict
- Users without a phone number do not collide with each other
- Unknown username -> NotFound
"""

import pytest

from auth.models import User
from auth.store import UserStore
from core.errors import Conflict, NotFound


def _user(username: str, phone: str = "") -> User:
    return User(
        username=username,
        firstname="First",
        lastname="Last",
        phone_number=phone,
        hashed_password="$2b$04$placeholderplaceholderplaceholderplaceholderplacehol",
    )


@pytest.fixture
def user_store(stores) -> UserStore:
    return stores[0]


class TestCreateUser:
    def test_create_and_fetch(self, user_store: UserStore) -> None:
        uid = user_store.create_user(_user("alice", "+15550001"))
        user = user_store.get_user_by_username("alice")
        assert user.id == uid
        assert user.firstname == "First"
        assert user.lastname == "Last"
        assert user.phone_number == "+15550001"
        assert user.created_at

    def test_duplicate_username(self, user_store: UserStore) -> None:
        user_store.create_user(_user("alice", "+15550001"))
        with pytest.raises(Conflict, match="already taken"):
            user_store.create_user(_user("alice", "+15550002"))

    def test_duplicate_phone_number(self, user_store: UserStore) -> None:
        user_store.create_user(_user("alice", "+15550001"))
        with pytest.raises(Conflict):
            user_store.create_user(_user("bob", "+15550001"))

    def test_missing_phone_numbers_do_not_collide(self, user_store: UserStore) -> None:
        user_store.create_user(_user("alice"))
        user_store.create_user(_user("bob"))
        assert user_store.get_user_by_username("bob").phone_number == ""


class TestLookup:
    def test_unknown_username(self, user_store: UserStore) -> None:
        with pytest.raises(NotFound):
            user_store.get_user_by_username("ghost")

    def test_username_is_case_sensitive(self, user_store: UserStore) -> None:
        user_store.create_user(_user("alice"))
        with pytest.raises(NotFound):
            user_store.get_user_by_username("ALICE")

    def test_ping(self, user_store: UserStore) -> None:
        assert user_store.ping() is True
