"""
api/routes/contact.py -- Contact form submission.

POST /contact stores {name, email, message}. Anonymous submissions are
accepted; when the request carries a live session the message is linked to
that user.
"""

from __future__ import annotations

import logging
import re

from fastapi import APIRouter, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError

from api.models import ContactRequest, MessageResponse
from auth.dependencies import get_request_session
from auth.errors import InvalidInputError
from auth.service import EMAIL_PATTERN
from contact.models import ContactMessage
from contact.store import ContactStore

logger = logging.getLogger("accountdesk.api")

_EMAIL_RE = re.compile(EMAIL_PATTERN)

# Auth policy:
# - POST /contact: public; the session, if any, only attributes the message
router = APIRouter()


@router.post("/contact", response_model=MessageResponse, status_code=201)
def submit_contact(request: Request, body: ContactRequest) -> MessageResponse:
    if not body.name or not body.email or not body.message:
        raise InvalidInputError("Name, email and message are required.")
    if not _EMAIL_RE.match(body.email):
        raise InvalidInputError("Email address is not valid.")

    store: ContactStore = request.app.state.contact_store
    msg = ContactMessage(
        name=body.name,
        email=body.email,
        message=body.message,
        user_id=get_request_session(request).user_id,
    )
    try:
        message_id = store.create_message(msg)
    except SQLAlchemyError as exc:
        logger.exception("Contact submission failed")
        raise HTTPException(
            status_code=500,
            detail={"code": "contact_failed", "message": "Error submitting message."},
        ) from exc

    logger.info("Contact message id=%s stored (user_id=%s)", message_id, msg.user_id)
    return MessageResponse(message="Message submitted successfully!")
