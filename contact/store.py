"""
contact/store.py -- SQLAlchemy-backed persistence for contact messages.

Append-only: create_message() and read helpers, no update or delete.

Security: all queries use bound parameters. No f-strings in SQL.

Usage:
    store = ContactStore("sqlite:///accountdesk.db")
    message_id = store.create_message(ContactMessage(name="Al", email="a@x.com", message="Hi"))
    store.get_message(message_id)
    store.close()
"""

from typing import Optional

from sqlalchemy import Column, Integer, MetaData, String, Table, Text
from sqlalchemy.engine import Engine

from contact.models import ContactMessage
from core.db import make_engine, now_iso

_metadata = MetaData()

_contacts = Table(
    "contacts",
    _metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String(255), nullable=False),
    Column("email", String(255), nullable=False),
    Column("message", Text, nullable=False),
    Column("user_id", Integer, index=True),  # NULL for anonymous submissions
    Column("created_at", String(32), nullable=False),
)


class ContactStore:
    def __init__(self, db_url: str) -> None:
        self.engine: Engine = make_engine(db_url)
        _metadata.create_all(self.engine)

    def create_message(self, msg: ContactMessage) -> int:
        """Insert a message and return its ID."""
        with self.engine.connect() as conn:
            result = conn.execute(
                _contacts.insert().values(
                    name=msg.name,
                    email=msg.email,
                    message=msg.message,
                    user_id=msg.user_id,
                    created_at=now_iso(),
                )
            )
            conn.commit()
            return result.inserted_primary_key[0]

    def get_message(self, message_id: int) -> Optional[ContactMessage]:
        with self.engine.connect() as conn:
            row = conn.execute(_contacts.select().where(_contacts.c.id == message_id)).fetchone()
        return _row_to_message(row) if row is not None else None

    def close(self) -> None:
        self.engine.dispose()


def _row_to_message(row) -> ContactMessage:
    return ContactMessage(
        id=row.id,
        name=row.name,
        email=row.email,
        message=row.message,
        user_id=row.user_id,
        created_at=row.created_at,
    )
