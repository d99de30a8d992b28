"""
contact/models.py -- Domain dataclass for contact-form submissions.

Pure data container. A message is written once and never updated.
"""

from dataclasses import dataclass
from typing import Optional


@dataclass
class ContactMessage:
    """A message submitted through the contact form.

    user_id is the logged-in user at submission time, or None for anonymous
    submissions. created_at is set by the store on insert.
    """

    name: str
    email: str
    message: str
    user_id: Optional[int] = None
    id: Optional[int] = None
    created_at: str = ""  # ISO 8601
