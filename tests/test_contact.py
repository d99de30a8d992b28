"""
tests/test_contact.py -- POST /contact.

Covers anonymous submissions, attribution to the logged-in user, and 400 on
missing or malformed fields.
"""

from __future__ import annotations

import pytest
from conftest import login, register


def test_anonymous_contact(client, app):
    resp = client.post("/contact", json={"name": "Al", "email": "al@x.com", "message": "Hello"})
    assert resp.status_code == 201
    assert resp.json() == {"message": "Message submitted successfully!"}

    stored = app.state.contact_store.get_message(1)
    assert stored.name == "Al"
    assert stored.message == "Hello"
    assert stored.user_id is None
    assert stored.created_at


def test_contact_linked_to_logged_in_user(client, app):
    register(client)
    login(client)
    user = app.state.user_store.get_by_email("a@x.com")

    resp = client.post("/contact", json={"name": "Alice", "email": "a@x.com", "message": "Hi"})
    assert resp.status_code == 201
    assert app.state.contact_store.get_message(1).user_id == user.id


@pytest.mark.parametrize(
    "body",
    [
        {"email": "al@x.com", "message": "Hello"},
        {"name": "Al", "message": "Hello"},
        {"name": "Al", "email": "al@x.com"},
        {"name": "   ", "email": "al@x.com", "message": "Hello"},
        {"name": "Al", "email": "nope", "message": "Hello"},
    ],
)
def test_contact_invalid_input(client, app, body):
    resp = client.post("/contact", json=body)
    assert resp.status_code == 400
    assert resp.json()["error"]["code"] == "validation_error"
    assert app.state.contact_store.get_message(1) is None
