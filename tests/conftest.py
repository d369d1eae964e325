"""
tests/conftest.py -- Shared test fixtures for the portal test suite.

This module provides:
  - _make_test_stores(): creates isolated in-memory stores for users + sessions
  - _patch_lifespan(): wires test stores into app.state, bypassing real startup
  - stores / service: unit-level fixtures on plain in-memory SQLite
  - web_client: TestClient with follow_redirects=False for route tests

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
TestClient because route handlers run in a thread pool. Plain :memory: DBs are
per-connection and would present a blank schema to each worker thread. The
named URI format (file:name?mode=memory&cache=shared&uri=true) shares one
in-memory instance across all connections in the same process.

DEBUG must be set before any auth/core import so get_settings() auto-generates
SECRET_KEY instead of raising. BCRYPT_ROUNDS is lowered to keep hashing fast.
"""

from __future__ import annotations

import asyncio
import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager
from dataclasses import dataclass

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("BCRYPT_ROUNDS", "4")

import pytest
from fastapi.testclient import TestClient

from asgi import app
from auth.service import AuthService
from auth.sessions import SessionStore
from auth.store import UserStore

# ---------------------------------------------------------------------------
# Store helpers
# ---------------------------------------------------------------------------


def _make_test_stores(db_suffix: str) -> tuple[str, UserStore, SessionStore]:
    """Create stores on one named shared-memory SQLite database. Returns (url, users, sessions).

    Args:
        db_suffix: Unique string appended to the DB name so tests don't share state.
    """
    url = f"sqlite:///file:test_portal_{db_suffix}?mode=memory&cache=shared&uri=true"
    return url, UserStore(url), SessionStore(url)


def _patch_lifespan(user_store: UserStore, session_store: SessionStore):
    """Return an async context manager that replaces the real lifespan.

    The purge_task is a long-sleeping coroutine standing in for the real
    purge loop (a real asyncio.Task is required for .cancel()).
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.user_store = user_store
        app.state.session_store = session_store
        app.state.auth_service = AuthService(user_store, session_store)
        app.state.purge_task = asyncio.create_task(asyncio.sleep(99999))
        yield
        app.state.purge_task.cancel()

    return test_lifespan


# ---------------------------------------------------------------------------
# Unit fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def stores() -> Generator[tuple[UserStore, SessionStore], None, None]:
    """Fresh user + session stores on private in-memory databases."""
    users = UserStore("sqlite:///:memory:")
    sessions = SessionStore("sqlite:///:memory:")
    yield users, sessions
    sessions.close()
    users.close()


@pytest.fixture
def service(stores: tuple[UserStore, SessionStore]) -> AuthService:
    users, sessions = stores
    return AuthService(users, sessions)


# ---------------------------------------------------------------------------
# Integration fixture
# ---------------------------------------------------------------------------


@dataclass
class WebHarness:
    client: TestClient
    users: UserStore
    sessions: SessionStore
    db_url: str


@pytest.fixture
def web_client() -> Generator[WebHarness, None, None]:
    """Yield a TestClient on the real app with isolated stores.

    Function-scoped: the client's cookie jar carries the session cookie
    between requests, so each test starts with a fresh jar and database.

    follow_redirects=False is essential: tests assert on redirect Location
    headers, which are invisible once the client follows the redirect.
    """
    db_url, users, sessions = _make_test_stores(uuid.uuid4().hex)
    app.router.lifespan_context = _patch_lifespan(users, sessions)

    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as client:
        yield WebHarness(client=client, users=users, sessions=sessions, db_url=db_url)

    sessions.close()
    users.close()
