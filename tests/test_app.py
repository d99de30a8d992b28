"""
tests/test_app.py -- App-level behavior: health, origin policy, signup page.

Covers:
  - GET /health: 200 with status, version and components; no auth required
  - origin guard: 403 for an unlisted Origin, pass-through for listed,
    absent, and same-server origins; CORS credentials header for listed ones
  - GET /signup renders the form wired to /register; GET / redirects to it
"""

from __future__ import annotations


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "healthy"
    assert data["version"] == "1.0.0"
    assert data["components"] == {"app": "ok", "database": "ok"}


def test_unlisted_origin_rejected(client, app):
    resp = client.post(
        "/register",
        json={"username": "alice", "email": "a@x.com", "password": "pw1"},
        headers={"Origin": "http://evil.example"},
    )
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "origin_not_allowed"
    # Rejected before the handler ran.
    assert app.state.user_store.get_by_email("a@x.com") is None


def test_listed_origin_allowed_with_credentials(client):
    resp = client.post(
        "/register",
        json={"username": "alice", "email": "a@x.com", "password": "pw1"},
        headers={"Origin": "http://localhost:5173"},
    )
    assert resp.status_code == 201
    assert resp.headers["access-control-allow-origin"] == "http://localhost:5173"
    assert resp.headers["access-control-allow-credentials"] == "true"


def test_same_server_origin_allowed(client):
    resp = client.get("/health", headers={"Origin": "http://testserver"})
    assert resp.status_code == 200


def test_no_origin_allowed(client):
    assert client.get("/health").status_code == 200


def test_signup_page(client):
    resp = client.get("/signup")
    assert resp.status_code == 200
    assert "text/html" in resp.headers["content-type"]
    body = resp.text
    for field in ("username", "email", "password", "confirm_password"):
        assert f'name="{field}"' in body
    assert "http://testserver/register" in body


def test_root_redirects_to_signup(client):
    resp = client.get("/")
    assert resp.status_code == 302
    assert resp.headers["location"] == "/signup"
