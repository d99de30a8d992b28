"""
api/routes/dashboard.py -- The session-gated dashboard.

GET /dashboard returns placeholder content for the logged-in user. Anonymous
requests (no cookie, stale cookie, destroyed or expired session) get 401 from
the require_session dependency before the handler runs.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from api.models import DashboardResponse
from auth.dependencies import require_session
from auth.errors import NotAuthenticatedError
from auth.store import UserStore

logger = logging.getLogger("accountdesk.api")

# Auth policy:
# - GET /dashboard: requires a logged-in session (require_session)
router = APIRouter()


@router.get("/dashboard", response_model=DashboardResponse)
def get_dashboard(request: Request, user_id: int = Depends(require_session)) -> DashboardResponse:
    user_store: UserStore = request.app.state.user_store
    try:
        user = user_store.get_by_id(user_id)
    except SQLAlchemyError as exc:
        logger.exception("Dashboard lookup failed")
        raise HTTPException(
            status_code=500,
            detail={"code": "dashboard_failed", "message": "Error loading dashboard."},
        ) from exc
    if user is None:
        raise NotAuthenticatedError()
    return DashboardResponse(
        message="Welcome to your dashboard!",
        user_id=user_id,
        username=user.username,
    )
