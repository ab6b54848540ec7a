"""
tests/conftest.py -- Shared test fixtures for SessionGate.

This module provides:
  - keys / store / service: unit-level building blocks (in-memory SQLite)
  - client: TestClient over the real FastAPI app with a patched lifespan that
    wires an isolated store and service into app.state

Design: Named shared-memory SQLite URIs (not plain :memory:) are required for
the TestClient because route handlers run in a thread pool. Plain :memory: DBs
are per-connection and would present a blank schema to each worker thread.
Each client fixture gets a unique name so tests never share identities.

Signing secrets and NODE_ENV must be set before any api/ or core/ import so
get_settings() resolves deterministic values.
"""

from __future__ import annotations

import os
import uuid
from collections.abc import Generator
from contextlib import asynccontextmanager

# CRITICAL: set before importing api.main, which reads settings at import time.
os.environ.setdefault("NODE_ENV", "development")
os.environ.setdefault("JWT_SECRET", "test-access-secret-0123456789abcdef0123456789")
os.environ.setdefault("JWT_REFRESH_SECRET", "test-refresh-secret-0123456789abcdef012345678")
os.environ.setdefault("CORS_ORIGIN", "http://localhost:3000")

import pytest
from fastapi.testclient import TestClient

from api.main import app
from auth.service import AuthService
from auth.store import UserStore
from auth.tokens import SigningKey, SigningKeys, TokenDomain
from core.config import Settings

ACCESS_SECRET = "unit-access-secret-aaaaaaaaaaaaaaaaaaaaaaaaaaaa"
REFRESH_SECRET = "unit-refresh-secret-bbbbbbbbbbbbbbbbbbbbbbbbbbb"

# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def keys() -> SigningKeys:
    """Access (1h) and refresh (7d) keys with distinct secrets."""
    return SigningKeys(
        access=SigningKey(TokenDomain.ACCESS, ACCESS_SECRET, 3600),
        refresh=SigningKey(TokenDomain.REFRESH, REFRESH_SECRET, 7 * 86400),
    )


@pytest.fixture
def store() -> Generator[UserStore, None, None]:
    s = UserStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def service(store: UserStore, keys: SigningKeys) -> AuthService:
    return AuthService(store, keys)


# ---------------------------------------------------------------------------
# Integration fixtures
# ---------------------------------------------------------------------------


def _patch_lifespan(settings: Settings, user_store: UserStore):
    """Return an async context manager that replaces the real lifespan.

    Wires the test store and a service built from `settings` into app.state
    so routes see an isolated DB instead of the configured one.
    """

    @asynccontextmanager
    async def test_lifespan(app):
        app.state.settings = settings
        app.state.user_store = user_store
        app.state.auth_service = AuthService(user_store, SigningKeys.from_settings(settings))
        yield

    return test_lifespan


def _make_client(settings: Settings) -> Generator[TestClient, None, None]:
    db_url = f"sqlite:///file:test_auth_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"
    user_store = UserStore(db_url)
    app.router.lifespan_context = _patch_lifespan(settings, user_store)
    with TestClient(app, raise_server_exceptions=True) as client:
        yield client
    user_store.close()


@pytest.fixture
def settings() -> Settings:
    return Settings(node_env="development", jwt_secret=ACCESS_SECRET, jwt_refresh_secret=REFRESH_SECRET)


@pytest.fixture
def client(settings: Settings) -> Generator[TestClient, None, None]:
    """TestClient against a fresh, empty identity store in development mode."""
    yield from _make_client(settings)


@pytest.fixture
def production_client() -> Generator[TestClient, None, None]:
    """TestClient whose settings say NODE_ENV=production (Secure + SameSite=Strict cookies)."""
    settings = Settings(node_env="production", jwt_secret=ACCESS_SECRET, jwt_refresh_secret=REFRESH_SECRET)
    yield from _make_client(settings)
