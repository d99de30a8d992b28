"""
auth/errors.py -- Client-facing authentication errors.

Every AuthError carries the HTTP status and the exact user-facing message.
api/main.py renders them in the standard error envelope, so the service layer
never imports FastAPI. Infrastructure failures (SQLAlchemyError,
SessionStoreError) are NOT AuthErrors -- they propagate to the route boundary
and become generic 500s.
"""

from __future__ import annotations


class AuthError(Exception):
    """Base class for errors whose message is safe to show to the client."""

    status_code: int = 400
    code: str = "auth_error"
    message: str = "Request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class InvalidInputError(AuthError):
    code = "validation_error"
    message = "All fields are required."


class UserExistsError(AuthError):
    code = "user_exists"
    message = "User already exists."


class InvalidCredentialsError(AuthError):
    """Raised for unknown email AND wrong password -- one message for both."""

    code = "bad_credentials"
    message = "Invalid email or password."


class NotAuthenticatedError(AuthError):
    status_code = 401
    code = "unauthorized"
    message = "Unauthorized. Please log in."
