"""
auth/middleware.py -- Resolves the session cookie on every request.

Per-request states:

  no-cookie          no session cookie on the request
  cookie-unresolved  cookie present, but the signature is bad or the id has
                     no live record (unknown, destroyed or expired)
  cookie-valid       cookie resolves to a live session record

no-cookie and cookie-unresolved are both anonymous for authorization. The
middleware never rejects a request -- it attaches a RequestSession at
request.state.session and lets route-level guards (auth.dependencies) decide.

On the way out it applies whatever the handler did to the RequestSession:
  issued   -> Set-Cookie with the new signed id
  dropped  -> delete the cookie
  stale    -> delete the cookie (cookie-unresolved requests)

Pattern: Interceptor. Registered with app.add_middleware() in api/main.py.

Layer rule: no imports from api/, web/, or contact/.
"""

from __future__ import annotations

import logging
from enum import Enum

from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

from auth.models import Session
from auth.sessions import SessionStore, SessionStoreError
from auth.tokens import clear_session_cookie, set_session_cookie, unsign_session_id
from core.config import Settings

logger = logging.getLogger("accountdesk.sessions")


class SessionStatus(str, Enum):
    NO_COOKIE = "no-cookie"
    UNRESOLVED = "cookie-unresolved"
    VALID = "cookie-valid"


class RequestSession:
    """The session as seen by one request.

    presented_id is the (signature-verified) id the client sent, whether or not
    it resolved to a record -- regeneration and logout destroy it either way.
    """

    def __init__(
        self,
        status: SessionStatus,
        presented_id: str | None = None,
        session: Session | None = None,
    ) -> None:
        self.status = status
        self.presented_id = presented_id
        self.session = session
        self.issued = False
        self.dropped = False

    @property
    def user_id(self) -> int | None:
        return self.session.user_id if self.session is not None else None

    @property
    def session_id(self) -> str | None:
        return self.session.session_id if self.session is not None else None

    def drop(self) -> None:
        """Forget the current session state; the cookie is deleted on the response."""
        self.session = None
        self.issued = False
        self.dropped = True

    def issue(self, session: Session) -> None:
        """Bind a freshly created session; its cookie is set on the response."""
        self.session = session
        self.status = SessionStatus.VALID
        self.issued = True
        self.dropped = False


class SessionMiddleware(BaseHTTPMiddleware):
    """Attach request.state.session and keep the cookie in sync with it."""

    def __init__(self, app: ASGIApp, store: SessionStore, settings: Settings) -> None:
        super().__init__(app)
        self.store = store
        self.settings = settings

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_session, stale = await self._resolve(request)
        request.state.session = request_session

        response = await call_next(request)

        if request_session.issued and request_session.session is not None:
            set_session_cookie(response, request_session.session.session_id, self.settings)
        elif request_session.dropped or stale:
            clear_session_cookie(response, self.settings)
        return response

    async def _resolve(self, request: Request) -> tuple[RequestSession, bool]:
        """Return (RequestSession, stale) for the incoming cookie.

        stale is True when the cookie should be deleted: bad signature or no
        live record. A store failure leaves the request anonymous but keeps the
        cookie -- the record may still be valid once the store recovers.
        """
        cookie = request.cookies.get(self.settings.session_cookie_name)
        if not cookie:
            return RequestSession(SessionStatus.NO_COOKIE), False

        session_id = unsign_session_id(self.settings.session_secret, cookie)
        if session_id is None:
            return RequestSession(SessionStatus.UNRESOLVED), True

        try:
            session = await run_in_threadpool(self.store.read, session_id)
        except SessionStoreError:
            logger.exception("Session lookup failed for sid=%s…", session_id[:8])
            return RequestSession(SessionStatus.UNRESOLVED, presented_id=session_id), False

        if session is None:
            return RequestSession(SessionStatus.UNRESOLVED, presented_id=session_id), True
        return RequestSession(SessionStatus.VALID, presented_id=session_id, session=session), False
