"""
web/routes.py -- Jinja2 template routes for the Accountdesk signup page.

The page is static apart from the form target: it collects username, email,
password and a confirmation, checks the two passwords match in the browser,
and POSTs JSON to /register. Registration does not start a session, so on
success the page only reports the result.

Routes:
  GET /        -- redirect to /signup
  GET /signup  -- signup form
"""

import logging
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

logger = logging.getLogger("accountdesk.web")

templates = Jinja2Templates(directory=str(Path(__file__).parent / "templates"))
router = APIRouter()


@router.get("/", include_in_schema=False)
def index() -> RedirectResponse:
    return RedirectResponse("/signup", status_code=302)


@router.get("/signup", response_class=HTMLResponse)
def signup_form(request: Request) -> HTMLResponse:
    """Render the signup page."""
    return templates.TemplateResponse(
        request,
        "signup.html",
        {"register_url": str(request.url_for("register"))},
    )
