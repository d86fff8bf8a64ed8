"""
tests/conftest.py -- Shared test fixtures for the film library test suite.

This module provides:
  - make_settings(): Settings with a fixed secret and isolated in-memory DBs
  - catalog_store / credential_store: in-memory stores for unit tests
  - codec: a TokenCodec over the test secret
  - client: TestClient over create_app(), lifespan included
  - admin_token / user_token: tokens obtained through the real /login route

Design: Named shared-memory SQLite URIs (not plain :memory:) are used for the
HTTP fixtures because TestClient runs sync route handlers in a thread pool.
Plain :memory: DBs are per-connection and would present a blank schema to
each worker thread. The named URI format
(file:name?mode=memory&cache=shared&uri=true) shares one in-memory instance
across all connections in the same process. A uuid suffix keeps every
fixture instance on its own database.
"""

from __future__ import annotations

import uuid
from collections.abc import Generator

import pytest
from fastapi.testclient import TestClient

from api.main import PREFIX, create_app
from auth.store import CredentialStore
from auth.tokens import TokenCodec
from catalog.store import CatalogStore
from core.config import Settings

TEST_SECRET = "test-secret-key-0123456789abcdef0123456789"

ADMIN_LOGIN = "admin"
ADMIN_PASSWORD = "adminpass123"
USER_LOGIN = "viewer"
USER_PASSWORD = "viewerpass123"


def _shared_memory_url(name: str) -> str:
    return f"sqlite:///file:{name}_{uuid.uuid4().hex}?mode=memory&cache=shared&uri=true"


def make_settings(**overrides) -> Settings:
    """Settings for tests: fixed secret, fresh DBs, rate limiting off."""
    values = {
        "secret_key": TEST_SECRET,
        "auth_db_url": _shared_memory_url("test_auth"),
        "catalog_db_url": _shared_memory_url("test_catalog"),
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(**values)


# ---------------------------------------------------------------------------
# Unit-level fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def catalog_store() -> Generator[CatalogStore, None, None]:
    s = CatalogStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def credential_store() -> Generator[CredentialStore, None, None]:
    s = CredentialStore("sqlite:///:memory:")
    yield s
    s.close()


@pytest.fixture
def codec() -> TokenCodec:
    return TokenCodec(TEST_SECRET)


# ---------------------------------------------------------------------------
# HTTP fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """TestClient over a freshly built app with empty databases."""
    app = create_app(make_settings())
    with TestClient(app, raise_server_exceptions=True) as c:
        yield c


def register_and_login(client: TestClient, login: str, password: str, role: int) -> str:
    """Register a user through the API and return the token from /login."""
    resp = client.post(f"{PREFIX}/registration", json={"login": login, "password": password, "role": role})
    assert resp.status_code == 201, resp.text
    resp = client.post(f"{PREFIX}/login", json={"login": login, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.headers["Authorization"]


@pytest.fixture
def admin_token(client: TestClient) -> str:
    return register_and_login(client, ADMIN_LOGIN, ADMIN_PASSWORD, 1)


@pytest.fixture
def user_token(client: TestClient) -> str:
    return register_and_login(client, USER_LOGIN, USER_PASSWORD, 0)
