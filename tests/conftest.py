"""
tests/conftest.py -- Shared test fixtures for SmartPlatform integration tests.

This module provides:
  - make_test_stores(): isolated in-memory user + user-role stores, seeded
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - api_client: TestClient plus an admin token and a plain-user token

Seeded accounts (see SEED_PASSWORD):
  alice -- enabled,  roles ADMIN, USER
  bob   -- enabled,  role  USER
  carol -- disabled, role  USER

Design: Named shared-memory SQLite URIs (not plain :memory:) are required
because TestClient runs sync route handlers in a thread pool. Plain :memory:
DBs are per-connection and would present a blank schema to each worker thread.

DEBUG and LOGIN_RATE_LIMIT must be set before any auth/core import:
get_settings() is cached on first use, DEBUG lets it auto-generate
SECRET_KEY, and the raised limit keeps the login tests from tripping the
production brute-force limit.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from contextlib import asynccontextmanager

os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOGIN_RATE_LIMIT", "1000/minute")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.models import Role, User, UserRole
from auth.store import UserStore
from auth.tokens import create_access_token, hash_password
from auth.user_roles import UserRoleStore

SEED_PASSWORD = "correct-horse-battery"

_SEED_USERS = (
    ("alice", True, ("ADMIN", "USER")),
    ("bob", True, ("USER",)),
    ("carol", False, ("USER",)),
)


# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def make_test_stores(db_name: str) -> tuple[UserStore, UserRoleStore]:
    """Create and seed a named shared-memory database for one test module."""
    url = f"sqlite:///file:{db_name}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url=url)
    user_role_store = UserRoleStore(db_url=url)

    role_ids = {name: user_store.create_role(Role(name=name)) for name in ("ADMIN", "USER")}
    hashed = hash_password(SEED_PASSWORD)
    for username, enabled, role_names in _SEED_USERS:
        uid = user_store.create_user(User(username=username, hashed_password=hashed, enabled=enabled))
        for name in role_names:
            user_role_store.save(UserRole(user_id=uid, role_id=role_ids[name]))
    return user_store, user_role_store


def _patch_lifespan(user_store: UserStore, user_role_store: UserRoleStore):
    """Return a lifespan that installs the given stores instead of opening real ones."""

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.user_role_store = user_role_store
        yield

    return test_lifespan


@pytest.fixture
def seed_password() -> str:
    return SEED_PASSWORD


# ---------------------------------------------------------------------------
# Module-scoped fixtures -- one TestClient per test module for speed
# ---------------------------------------------------------------------------


@pytest.fixture(scope="module")
def api_client(request) -> Generator[tuple[TestClient, str, str], None, None]:
    """Yield (client, admin_token, user_token).

    Each test module gets its own database, named after the module, so
    writes in one module never leak into another.
    """
    db_name = "test_" + request.module.__name__.replace(".", "_")
    user_store, user_role_store = make_test_stores(db_name)

    admin_token = create_access_token("alice", ["ADMIN", "USER"])
    user_token = create_access_token("bob", ["USER"])

    app.router.lifespan_context = _patch_lifespan(user_store, user_role_store)

    with TestClient(app, raise_server_exceptions=True) as client:
        yield client, admin_token, user_token

    user_role_store.close()
    user_store.close()
