"""
api/routes/auth.py -- Registration, login and logout endpoints.

Routes:
  POST /register  -- create an account; 201. Does NOT log the user in.
  POST /login     -- verify credentials, regenerate the session; 200 + cookie
  POST /logout    -- destroy the session; 200, cookie cleared

Security:
  POST /register and POST /login are rate-limited per IP (CREDENTIALS_LIMIT).
  Unknown email and wrong password share one error ("bad_credentials").
  Cache-Control: no-store on login responses.

Client errors are AuthErrors raised by AuthService and rendered by the handler
in api/main.py. Store failures are caught here, logged with the traceback,
and answered with a generic 500 -- no internal detail reaches the client.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from api.limiter import CREDENTIALS_LIMIT, limiter
from api.models import LoginRequest, MessageResponse, RegisterRequest
from auth.dependencies import get_auth_service, get_request_session
from auth.sessions import SessionStoreError

logger = logging.getLogger("accountdesk.api")

# Auth policy:
# - POST /register: public
# - POST /login:    public -- login endpoint must be unauthenticated
# - POST /logout:   public -- destroying a session needs no prior auth
router = APIRouter()


def _server_error(code: str, message: str) -> HTTPException:
    return HTTPException(status_code=500, detail={"code": code, "message": message})


@limiter.limit(CREDENTIALS_LIMIT)  # must be ABOVE @router to preserve FastAPI introspection
@router.post("/register", response_model=MessageResponse, status_code=201)
def register(request: Request, body: RegisterRequest) -> MessageResponse:
    """Register a new user. No session is created -- the client logs in next."""
    auth = get_auth_service(request)
    try:
        auth.register(body.username, body.email, body.password)
    except SQLAlchemyError as exc:
        logger.exception("Registration failed")
        raise _server_error("registration_failed", "Error registering user.") from exc
    return MessageResponse(message="User registered successfully!")


@limiter.limit(CREDENTIALS_LIMIT)
@router.post("/login", response_model=MessageResponse)
def login(request: Request, body: LoginRequest) -> JSONResponse:
    """Authenticate with email and password and start a fresh session."""
    auth = get_auth_service(request)
    try:
        auth.login(get_request_session(request), body.email, body.password)
    except (SQLAlchemyError, SessionStoreError) as exc:
        logger.exception("Login failed")
        raise _server_error("login_failed", "Error logging in.") from exc

    resp = JSONResponse(status_code=200, content=MessageResponse(message="Login successful!").model_dump())
    resp.headers["Cache-Control"] = "no-store"
    return resp


@router.post("/logout", response_model=MessageResponse)
def logout(request: Request) -> MessageResponse:
    """Destroy the session record and clear the cookie."""
    auth = get_auth_service(request)
    try:
        auth.logout(get_request_session(request))
    except SessionStoreError as exc:
        logger.exception("Logout failed")
        raise _server_error("logout_failed", "Error logging out.") from exc
    return MessageResponse(message="Logout successful!")
