"""
auth/tokens.py -- Password hashing, session ids, and session cookie utilities.

Security design decisions:
  Passwords: bcrypt used directly (no passlib wrapper). bcrypt generates a
       random per-hash salt, so two users with the same password never share a
       stored hash. The cost factor comes from Settings.bcrypt_rounds
       (default 10). A dummy hash at the same cost enables timing
       equalization for unknown emails -- see verify_or_waste().

  Session ids: secrets.token_urlsafe(32) -- 256 bits of entropy. The id is
       opaque; it carries no user data.

  Cookie value: the session id signed with itsdangerous using SESSION_SECRET.
       A tampered or foreign cookie fails signature verification and is
       treated exactly like an unknown id. Signing does not replace the
       server-side lookup -- a validly signed id for a destroyed session still
       resolves to nothing.

Layer rule: no imports from api/, web/, or contact/. Import from core/ is
allowed -- core/ is the kernel and has no reverse dependencies.
"""

from __future__ import annotations

import logging
import secrets
from functools import lru_cache
from typing import TYPE_CHECKING

import bcrypt
from itsdangerous import BadSignature, Signer

if TYPE_CHECKING:
    from starlette.responses import Response

    from core.config import Settings

logger = logging.getLogger("accountdesk.auth")

_COOKIE_SALT = "accountdesk.session"

# bcrypt only looks at the first 72 bytes of its input.
MAX_PASSWORD_BYTES = 72

# ---------------------------------------------------------------------------
# Password hashing
# ---------------------------------------------------------------------------


def hash_password(plain: str, rounds: int = 10) -> str:
    """Return a salted bcrypt hash of the given plaintext password."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    """Constant-time comparison against a bcrypt hash. Malformed hashes never match."""
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        return False


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> str:
    return hash_password("accountdesk_timing_dummy", rounds=rounds)


def verify_or_waste(plain: str, hashed: str | None, rounds: int = 10) -> bool:
    """Verify plain against hashed, or burn one bcrypt check if there is no hash.

    Login calls this for every attempt so an unknown email costs the same
    bcrypt work as a wrong password.
    """
    if hashed is None:
        verify_password(plain, _dummy_hash(rounds))
        return False
    return verify_password(plain, hashed)


# ---------------------------------------------------------------------------
# Session ids and cookie signing
# ---------------------------------------------------------------------------


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


def _signer(secret: str) -> Signer:
    return Signer(secret, salt=_COOKIE_SALT)


def sign_session_id(secret: str, session_id: str) -> str:
    return _signer(secret).sign(session_id).decode("utf-8")


def unsign_session_id(secret: str, cookie_value: str) -> str | None:
    """Return the session id from a signed cookie value, or None if the signature is bad."""
    try:
        return _signer(secret).unsign(cookie_value).decode("utf-8")
    except BadSignature:
        logger.debug("Rejected session cookie with bad signature")
        return None


def set_session_cookie(response: Response, session_id: str, settings: Settings) -> None:
    """Write the signed session id as an httpOnly cookie on the response.

    httponly=True: JS cannot read the cookie (XSS mitigation).
    samesite="lax": not sent on cross-site POST -- CSRF mitigation for most cases.
    secure: only sent over HTTPS in production mode.
    max_age: matches the server-side session lifetime.
    """
    response.set_cookie(
        settings.session_cookie_name,
        value=sign_session_id(settings.session_secret, session_id),
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
        max_age=settings.session_max_age_seconds,
    )


def clear_session_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_cookie_name,
        httponly=True,
        samesite="lax",
        secure=settings.is_production,
    )
