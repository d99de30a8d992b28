"""
auth/service.py -- Registration, login, logout and the session guard.

AuthService is the only component that enforces authentication invariants:

  register      validate -> reject duplicate email -> bcrypt -> insert.
                No session is created; login is always a separate step.
  login         uniform failure for unknown email and wrong password, then
                REGENERATE: destroy whatever session id the client presented
                and bind a brand-new id to the user. An attacker who planted a
                session id before login cannot ride it afterwards.
  logout        destroy the record itself, not just the user binding.
  require_session
                logged in or NotAuthenticatedError. No roles.

Store failures (SQLAlchemyError from UserStore, SessionStoreError from the
session backend) are not caught here -- the route boundary logs them and
answers 500. The one exception is the UNIQUE(email) IntegrityError, which is a
client error (a concurrent registration won the race) and is mapped to
UserExistsError.

Layer rule: no imports from api/, web/, or contact/. No FastAPI imports.
"""

from __future__ import annotations

import logging
import re
from typing import TYPE_CHECKING

from sqlalchemy.exc import IntegrityError

from auth.errors import InvalidCredentialsError, InvalidInputError, NotAuthenticatedError, UserExistsError
from auth.models import User
from auth.tokens import MAX_PASSWORD_BYTES, hash_password, verify_or_waste

if TYPE_CHECKING:
    from auth.middleware import RequestSession
    from auth.sessions import SessionStore
    from auth.store import UserStore
    from core.config import Settings

logger = logging.getLogger("accountdesk.auth")

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"
_EMAIL_RE = re.compile(EMAIL_PATTERN)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def validate_registration(username: str, email: str, password: str) -> tuple[str, str, str]:
    """Check registration input and return the normalized (username, email, password).

    Runs before any store access, so it is testable without a database.
    The password is not stripped -- whitespace is part of the secret.
    """
    username = (username or "").strip()
    email = normalize_email(email or "")
    password = password or ""

    if not username or not email or not password:
        raise InvalidInputError("Username, email and password are required.")
    if len(username) > 255:
        raise InvalidInputError("Username must be at most 255 characters.")
    if len(email) > 255 or not _EMAIL_RE.match(email):
        raise InvalidInputError("Email address is not valid.")
    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise InvalidInputError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return username, email, password


class AuthService:
    def __init__(self, users: UserStore, sessions: SessionStore, settings: Settings) -> None:
        self.users = users
        self.sessions = sessions
        self.rounds = settings.bcrypt_rounds

    def register(self, username: str, email: str, password: str) -> User:
        """Create a user. Raises InvalidInputError or UserExistsError on client errors."""
        username, email, password = validate_registration(username, email, password)

        # Checked before hashing: a duplicate costs no bcrypt work.
        if self.users.get_by_email(email) is not None:
            raise UserExistsError()

        user = User(username=username, email=email, hashed_password=hash_password(password, self.rounds))
        try:
            user.id = self.users.create_user(user)
        except IntegrityError as exc:
            # Concurrent registration for the same email inserted first. UNIQUE(email)
            # is the only constraint left to violate: validate_registration has
            # already ruled out empty and oversized values.
            raise UserExistsError() from exc

        logger.info("Registered user id=%s", user.id)
        return user

    def login(self, request_session: RequestSession, email: str, password: str) -> User:
        """Verify credentials and bind a regenerated session to the request.

        Raises InvalidCredentialsError for any credential problem. Raises
        SessionStoreError if regeneration fails; request_session is already
        dropped at that point, so nothing half-authenticated survives.
        """
        email = normalize_email(email or "")
        password = password or ""
        if not email or not password:
            raise InvalidCredentialsError()

        user = self.users.get_by_email(email)
        hashed = user.hashed_password if user is not None else None
        if not verify_or_waste(password, hashed, self.rounds) or user is None:
            logger.info("Failed login attempt")
            raise InvalidCredentialsError()

        self._regenerate(request_session, user)
        logger.info("Login user id=%s", user.id)
        return user

    def _regenerate(self, request_session: RequestSession, user: User) -> None:
        old_id = request_session.presented_id
        request_session.drop()
        if old_id is not None:
            self.sessions.destroy(old_id)
        request_session.issue(self.sessions.create(user.id))

    def logout(self, request_session: RequestSession) -> None:
        """Destroy the presented session. Succeeds when there is nothing to destroy.

        The request session is only dropped once the record is gone: if destroy
        raises, the client keeps its cookie and can retry.
        """
        session_id = request_session.presented_id
        user_id = request_session.user_id
        if session_id is not None:
            self.sessions.destroy(session_id)
        request_session.drop()
        logger.info("Logout user id=%s", user_id)

    def require_session(self, request_session: RequestSession) -> int:
        user_id = request_session.user_id
        if user_id is None:
            raise NotAuthenticatedError()
        return user_id
