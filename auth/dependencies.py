"""
auth/dependencies.py -- FastAPI Depends() helpers for session access.

get_request_session() returns the RequestSession the SessionMiddleware
attached to the request. require_session() is the guard for protected routes:
it returns the logged-in user id or raises NotAuthenticatedError (401).

Layer rule: no imports from api/, web/, or contact/.
  auth/dependencies.py may import from fastapi because this module is part of
  the FastAPI dependency injection system.
"""

from __future__ import annotations

from fastapi import Request

from auth.middleware import RequestSession, SessionStatus
from auth.service import AuthService


def get_request_session(request: Request) -> RequestSession:
    """Return the request's session state (anonymous if the middleware is absent)."""
    session = getattr(request.state, "session", None)
    if session is None:
        session = RequestSession(SessionStatus.NO_COOKIE)
        request.state.session = session
    return session


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def require_session(request: Request) -> int:
    """Require a logged-in session. Returns the bound user id.

    Use as a FastAPI dependency:
        @router.get("/protected")
        def route(user_id: int = Depends(require_session)): ...
    """
    return get_auth_service(request).require_session(get_request_session(request))
