"""
tests/conftest.py -- Shared test fixtures for Bookman unit and integration tests.

This module provides:
  - _make_test_stores(): creates an isolated in-memory DB shared by both stores
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores / authenticator: per-test fixtures for store and auth unit tests
  - api_client: TestClient with a seeded user and its token for API tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs route handlers in a thread pool, and because the
UserStore and CatalogStore each own an engine but must see the same tables.
The named URI format (file:name?mode=memory&cache=shared&uri=true) shares
one in-memory instance across all connections in the same process.

bcrypt runs at cost 4 here; the production default of 12 would make the
suite needlessly slow without testing anything extra.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import User
from auth.store import UserStore
from auth.tokens import AuthConfig, Authenticator
from catalog.store import CatalogStore

TEST_BCRYPT_ROUNDS = 4

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[UserStore, CatalogStore]:
    """Create both stores on one isolated named shared-memory SQLite database.

    Args:
        db_suffix: Unique string appended to the DB name so tests and test
                   modules never share state.
    """
    url = f"sqlite:///file:test_bookman_{db_suffix}?mode=memory&cache=shared&uri=true"
    return UserStore(url), CatalogStore(url)


def make_authenticator(store: UserStore, lifetime: timedelta = timedelta(minutes=10)) -> Authenticator:
    return Authenticator(store, AuthConfig(token_lifetime=lifetime, bcrypt_rounds=TEST_BCRYPT_ROUNDS))


def _patch_lifespan(user_store: UserStore, catalog: CatalogStore, authenticator: Authenticator):
    """Return an async context manager that replaces the real lifespan.

    Wires pre-created test stores into app.state so TestClient routes see
    isolated test DBs rather than the configured database.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.catalog = catalog
        app.state.authenticator = authenticator
        yield

    return test_lifespan


# ---------------------------------------------------------------------------
# Function-scoped fixtures -- fresh database per test
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[UserStore, CatalogStore], None, None]:
    user_store, catalog = _make_test_stores(uuid.uuid4().hex)
    yield user_store, catalog
    catalog.close()
    user_store.close()


@pytest.fixture
def authenticator(stores: tuple[UserStore, CatalogStore]) -> Authenticator:
    return make_authenticator(stores[0])


@pytest.fixture
def auth_factory(stores: tuple[UserStore, CatalogStore]):
    """Build extra Authenticators on the same store, each with its own fresh secret."""

    def _make(lifetime: timedelta = timedelta(minutes=10)) -> Authenticator:
        return make_authenticator(stores[0], lifetime)

    return _make


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client() -> Generator[tuple[TestClient, str], None, None]:
    """Yield (client, token) for API integration tests.

    The TestClient uses the real FastAPI app with a patched lifespan so tests
    hit real route handlers but use an isolated in-memory database. The user
    "testuser" / "testpass123" exists before the client starts and token is a
    valid access token for it.
    """
    user_store, catalog = _make_test_stores(f"api_{uuid.uuid4().hex}")
    authenticator = make_authenticator(user_store)

    user_store.create_user(
        User(
            username="testuser",
            firstname="Test",
            lastname="User",
            phone_number="+10000000000",
            hashed_password=authenticator.hash_password("testpass123"),
        )
    )
    token = authenticator.create_access_token("testuser")

    app.router.lifespan_context = _patch_lifespan(user_store, catalog, authenticator)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, token

    catalog.close()
    user_store.close()
