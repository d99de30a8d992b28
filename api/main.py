"""
api/main.py -- FastAPI application factory for Accountdesk.

Run with:      python main.py
               uvicorn asgi:app --reload

create_app(settings) builds every component from one immutable Settings
object: the stores, the AuthService, and the middleware that need them. If no
Settings is passed, get_settings() loads it from the environment -- and
raises before anything else is built when DATABASE_URL or SESSION_SECRET is
missing.

Middleware stack (outermost to innermost, i.e. the order a request meets them):
  1. request logging      -- method, path, status, latency
  2. origin guard         -- 403 for credentialed calls from unlisted origins
  3. TrustedHostMiddleware -- rejects requests with unexpected Host headers
  4. CORSMiddleware       -- CORS headers for the allowed origins, credentials on
  5. SlowAPIMiddleware    -- per-route rate limits from api.limiter
  6. SessionMiddleware    -- resolves the session cookie into request.state.session

Lifespan starts the expired-session purge task and closes the stores on
shutdown.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from sqlalchemy.exc import SQLAlchemyError
from starlette.concurrency import run_in_threadpool

from api.limiter import limiter
from api.models import ErrorDetail, ErrorResponse, HealthResponse
from api.routes.auth import router as auth_router
from api.routes.contact import router as contact_router
from api.routes.dashboard import router as dashboard_router
from auth.errors import AuthError
from auth.middleware import SessionMiddleware
from auth.service import AuthService
from auth.sessions import SessionStore, SessionStoreError, build_session_store
from auth.store import UserStore
from contact.store import ContactStore
from core.config import Settings, configure_logging, get_settings

VERSION = "1.0.0"

logger = logging.getLogger("accountdesk.api")

# Hourly sweep of expired session records.
_PURGE_INTERVAL_SECONDS = 60 * 60


# ---------------------------------------------------------------------------
# Background purge task
# ---------------------------------------------------------------------------


async def _purge_loop(store: SessionStore) -> None:
    """Delete expired session records every hour.

    CancelledError from task.cancel() during shutdown propagates out of
    asyncio.sleep and unwinds the coroutine cleanly. A failed sweep is logged
    and retried on the next tick; reads already ignore expired records.
    """
    while True:
        await asyncio.sleep(_PURGE_INTERVAL_SECONDS)
        try:
            removed = await run_in_threadpool(store.expire)
        except SessionStoreError:
            logger.exception("Expired-session purge failed")
            continue
        if removed:
            logger.info("Purged %d expired sessions", removed)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Everything before yield runs on startup; everything after on shutdown."""
    logger.info("Accountdesk API starting up (environment=%s)", app.state.settings.environment)
    app.state.purge_task = asyncio.create_task(_purge_loop(app.state.session_store))

    yield

    app.state.purge_task.cancel()
    app.state.session_store.close()
    app.state.contact_store.close()
    app.state.user_store.close()
    logger.info("Accountdesk API shutdown complete")


# ---------------------------------------------------------------------------
# Application factory
# ---------------------------------------------------------------------------


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the ASGI app and its components from one Settings instance."""
    if settings is None:
        settings = get_settings()
    configure_logging(settings)

    user_store = UserStore(settings.database_url)
    session_store = build_session_store(
        settings.session_backend,
        settings.database_url,
        ttl=settings.session_max_age_seconds,
    )
    contact_store = ContactStore(settings.database_url)

    app = FastAPI(
        title="Accountdesk API",
        description="User registration, login and session-gated access.",
        version=VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.user_store = user_store
    app.state.session_store = session_store
    app.state.contact_store = contact_store
    app.state.auth_service = AuthService(user_store, session_store, settings)

    # SlowAPI looks for app.state.limiter by convention. The limiter is one
    # module-level instance, so every app in the process shares its counters
    # and the enabled flag last set here.
    limiter.enabled = settings.rate_limit_enabled
    app.state.limiter = limiter

    _add_middleware(app, settings)
    _add_exception_handlers(app)

    app.include_router(auth_router, tags=["Auth"])
    app.include_router(dashboard_router, tags=["Dashboard"])
    app.include_router(contact_router, tags=["Contact"])

    @app.get("/health", tags=["Health"])
    def health(request: Request) -> HealthResponse:
        """Return liveness, version and database reachability. No auth, no rate limit."""
        components = {"app": "ok", "database": "ok"}
        try:
            request.app.state.user_store.ping()
        except SQLAlchemyError:
            logger.exception("Health check: database unreachable")
            components["database"] = "error"
        return HealthResponse(version=VERSION, components=components)

    return app


# ---------------------------------------------------------------------------
# Middleware stack
#
# add_middleware() inserts at the outside of the stack, so the LAST one added
# is the first one a request meets. Register innermost first.
# ---------------------------------------------------------------------------


def _add_middleware(app: FastAPI, settings: Settings) -> None:
    app.add_middleware(SessionMiddleware, store=app.state.session_store, settings=settings)
    app.add_middleware(SlowAPIMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type"],
        max_age=3600,
    )
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.allowed_hosts)

    allowed_origins = set(settings.allowed_origins)

    @app.middleware("http")
    async def origin_guard(request: Request, call_next):
        """Reject browser calls from origins outside the allow-list.

        CORSMiddleware only withholds headers from unlisted origins; the request
        itself would still reach the handler. Requests without an Origin header
        (same-origin navigation, curl, server-to-server) pass, and so do calls
        from this server's own origin (the signup page posting to /register).
        """
        origin = request.headers.get("origin")
        own_origin = f"{request.url.scheme}://{request.url.netloc}"
        if origin is not None and origin != own_origin and origin not in allowed_origins:
            logger.warning("Rejected request from origin %s to %s", origin, request.url.path)
            return JSONResponse(
                status_code=403,
                content=ErrorResponse(
                    error=ErrorDetail(code="origin_not_allowed", message="Origin not allowed.")
                ).model_dump(exclude_none=True),
            )
        return await call_next(request)

    @app.middleware("http")
    async def log_requests(request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logger.info(
            "%s %s %d %.1fms %s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            request.client.host if request.client else "unknown",
        )
        return response


# ---------------------------------------------------------------------------
# Exception handlers
#
# All handlers return the same ErrorResponse envelope so clients can parse
# errors uniformly without inspecting status codes to choose a schema.
# ---------------------------------------------------------------------------


def _add_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError) -> JSONResponse:
        """Render client-facing auth errors (400/401) with their fixed message."""
        response = JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(error=ErrorDetail(code=exc.code, message=exc.message)).model_dump(
                exclude_none=True
            ),
        )
        response.headers["Cache-Control"] = "no-store"
        return response

    @app.exception_handler(RateLimitExceeded)
    async def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> JSONResponse:
        """Return 429 with a structured error when a rate limit is exceeded."""
        retry_after = int(getattr(exc, "retry_after", 60))
        response = JSONResponse(
            status_code=429,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="rate_limited",
                    message="Too many requests.",
                    detail=str(exc),
                )
            ).model_dump(),
        )
        response.headers["Retry-After"] = str(retry_after)
        return response

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        """Return 422 with structured error when the request body fails validation."""
        return JSONResponse(
            status_code=422,
            content=ErrorResponse(
                error=ErrorDetail(
                    code="validation_error",
                    message="Request validation failed.",
                    detail=str(exc.errors()),
                )
            ).model_dump(),
        )

    @app.exception_handler(HTTPException)
    async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
        """Return a structured error for all FastAPI/Starlette HTTP exceptions.

        Route handlers raise HTTPException with a {"code", "message"} dict as
        detail. When detail is already a structured dict, use it directly as the
        error field rather than stringifying it.
        """
        if isinstance(exc.detail, dict):
            return JSONResponse(status_code=exc.status_code, content={"error": exc.detail})
        return JSONResponse(
            status_code=exc.status_code,
            content=ErrorResponse(
                error=ErrorDetail(code=f"http_{exc.status_code}", message=str(exc.detail))
            ).model_dump(exclude_none=True),
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        """Catch-all handler for unexpected server errors.

        The raw exception goes to the log only, never to the response body.
        """
        logger.exception("Unhandled exception on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=500,
            content=ErrorResponse(
                error=ErrorDetail(code="internal_error", message="An unexpected error occurred.")
            ).model_dump(exclude_none=True),
        )
