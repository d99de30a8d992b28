"""
tests/test_dashboard.py -- GET /dashboard and the session middleware states.

Covers:
  - the full register -> login -> dashboard -> logout -> dashboard flow
  - no-cookie: 401, nothing written to the response cookies
  - cookie-unresolved (bad signature, unknown id, expired record): 401 and the
    stale cookie is deleted
  - cookie-valid: 200 with the bound user id
"""

from __future__ import annotations

import pytest
from conftest import cookie_header, login, make_settings, register
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from api.main import create_app
from auth.sessions import SessionStoreError
from auth.tokens import sign_session_id, unsign_session_id


def test_register_login_dashboard_logout_flow(client, app):
    assert register(client, username="alice", email="a@x.com", password="pw1").status_code == 201

    login_resp = login(client, email="a@x.com", password="pw1")
    assert login_resp.status_code == 200
    cookie = login_resp.cookies["sid"]

    dash = client.get("/dashboard")
    assert dash.status_code == 200
    user = app.state.user_store.get_by_email("a@x.com")
    assert dash.json() == {
        "message": "Welcome to your dashboard!",
        "user_id": user.id,
        "username": "alice",
    }

    assert client.post("/logout").status_code == 200

    client.cookies.clear()
    resp = client.get("/dashboard", headers=cookie_header(cookie))
    assert resp.status_code == 401
    assert resp.json()["error"]["message"] == "Unauthorized. Please log in."


def test_dashboard_without_cookie(client):
    resp = client.get("/dashboard")
    assert resp.status_code == 401
    assert resp.json()["error"]["code"] == "unauthorized"
    assert "set-cookie" not in resp.headers


def test_dashboard_with_tampered_cookie(client):
    register(client)
    cookie = login(client).cookies["sid"]
    client.cookies.clear()

    tampered = ("A" if cookie[0] != "A" else "B") + cookie[1:]
    resp = client.get("/dashboard", headers=cookie_header(tampered))
    assert resp.status_code == 401
    assert "max-age=0" in resp.headers["set-cookie"].lower()


def test_dashboard_with_unknown_session_id(client, settings):
    forged = sign_session_id(settings.session_secret, "no-such-session")
    resp = client.get("/dashboard", headers=cookie_header(forged))
    assert resp.status_code == 401
    assert "max-age=0" in resp.headers["set-cookie"].lower()


def test_cookie_signed_with_other_secret_is_rejected(client):
    register(client)
    login(client)
    client.cookies.clear()

    foreign = sign_session_id("another-secret-that-is-long-enough-0000", "whatever")
    assert client.get("/dashboard", headers=cookie_header(foreign)).status_code == 401


@pytest.mark.parametrize("backend", ["database", "memory"])
def test_expired_session_is_anonymous(db_url, backend):
    settings = make_settings(db_url, session_backend=backend)
    app = create_app(settings)

    with TestClient(app) as client:
        register(client)
        cookie = login(client).cookies["sid"]
        session_id = unsign_session_id(settings.session_secret, cookie)

        store = app.state.session_store
        expires_at = store.read(session_id).expires_at
        store._clock = lambda: expires_at + 1

        client.cookies.clear()
        resp = client.get("/dashboard", headers=cookie_header(cookie))
        assert resp.status_code == 401
        assert "max-age=0" in resp.headers["set-cookie"].lower()


def test_session_lookup_failure_is_anonymous_but_keeps_cookie(db_url, monkeypatch):
    settings = make_settings(db_url, session_backend="memory")
    app = create_app(settings)

    def broken_read(session_id):
        raise SessionStoreError("backend unavailable")

    with TestClient(app) as client:
        register(client)
        cookie = login(client).cookies["sid"]
        monkeypatch.setattr(app.state.session_store, "read", broken_read)

        client.cookies.clear()
        resp = client.get("/dashboard", headers=cookie_header(cookie))
        assert resp.status_code == 401
        assert "set-cookie" not in resp.headers


def test_dashboard_store_failure_is_500(client, app, monkeypatch):
    register(client)
    login(client)

    def broken_lookup(user_id):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(app.state.user_store, "get_by_id", broken_lookup)

    resp = client.get("/dashboard")
    assert resp.status_code == 500
    assert resp.json()["error"] == {"code": "dashboard_failed", "message": "Error loading dashboard."}
