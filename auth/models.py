"""
auth/models.py -- Domain dataclasses for authentication entities.

Pattern: Data class (pure data container, zero logic). Dataclasses own domain
shape; stores and the service do the work.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass
class User:
    """A registered identity.

    email is the login identifier and is unique across all users. It is
    stored stripped and lower-cased so "A@x.com" and "a@x.com" collide.

    hashed_password is the bcrypt hash; the plaintext is never persisted.
    """

    username: str
    email: str
    hashed_password: str
    id: int | None = None
    created_at: str | None = None


@dataclass(frozen=True)
class Session:
    """Server-side proof of a successful login.

    session_id is the opaque token carried (signed) in the session cookie.
    expires_at is fixed at creation -- activity does not extend it.
    Timestamps are POSIX seconds (UTC).
    """

    session_id: str
    user_id: int
    created_at: float
    expires_at: float

    def is_expired(self, now: float) -> bool:
        return now >= self.expires_at
