"""
tests/conftest.py -- Shared fixtures for Accountdesk integration tests.

This module provides:
  - make_settings(): a valid Settings for tests (fast bcrypt, no rate limit)
  - settings:        Settings pointing at a fresh per-test SQLite database
  - app:             the real application from create_app(settings) plus the web router
  - client:          TestClient running the app's lifespan
  - register / login helpers shared by the route tests

Design: each test gets its own SQLite file under tmp_path. The three stores
(users, sessions, contacts) each open their own Engine on the same URL, and
TestClient runs sync handlers in a thread pool, so the database has to be
visible to every connection -- a file is, a plain ':memory:' DB is not.

Settings are built explicitly and passed to create_app(); nothing here reads
the process environment.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.main import create_app
from core.config import Settings
from web.routes import router as web_router

TEST_SECRET = "test-session-secret-0123456789abcdef"


def make_settings(db_url: str, **overrides) -> Settings:
    """Return Settings for tests. bcrypt at the minimum cost keeps the suite fast."""
    values = {
        "database_url": db_url,
        "session_secret": TEST_SECRET,
        "bcrypt_rounds": 4,
        "rate_limit_enabled": False,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'accountdesk.db'}"


@pytest.fixture
def settings(db_url: str) -> Settings:
    return make_settings(db_url)


@pytest.fixture
def app(settings: Settings) -> FastAPI:
    application = create_app(settings)
    application.include_router(web_router, tags=["Web UI"])
    return application


@pytest.fixture
def client(app: FastAPI) -> Generator[TestClient, None, None]:
    """TestClient with follow_redirects=False so redirect responses can be asserted on."""
    with TestClient(app, follow_redirects=False, raise_server_exceptions=True) as c:
        yield c


# ---------------------------------------------------------------------------
# Request helpers
# ---------------------------------------------------------------------------


def register(client: TestClient, username="alice", email="a@x.com", password="pw1"):
    return client.post("/register", json={"username": username, "email": email, "password": password})


def login(client: TestClient, email="a@x.com", password="pw1"):
    return client.post("/login", json={"email": email, "password": password})


def cookie_header(value: str) -> dict[str, str]:
    """Send an explicit session cookie, bypassing the client's cookie jar."""
    return {"Cookie": f"sid={value}"}
