"""
API request and response models for Accountdesk REST endpoints.

These Pydantic v2 models define the HTTP transport contract for the API layer.
They are intentionally separate from the dataclasses in auth/models.py and
contact/models.py, which own the internal domain representation.

Request fields default to "" rather than being required: a missing field is a
400 from the service-level validation (one message, one code), not a 422 from
Pydantic. Pydantic still rejects wrong JSON types and oversized values.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class RegisterRequest(BaseModel):
    """Request body for POST /register."""

    username: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    # bcrypt's 72-byte limit is enforced by the service; this only caps abuse.
    password: str = Field(default="", max_length=255)


class LoginRequest(BaseModel):
    """Request body for POST /login."""

    email: str = Field(default="", max_length=255)
    password: str = Field(default="", max_length=255)


class ContactRequest(BaseModel):
    """Request body for POST /contact."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(default="", max_length=255)
    email: str = Field(default="", max_length=255)
    message: str = Field(default="", max_length=5000)


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class MessageResponse(BaseModel):
    """Plain confirmation returned by the mutating endpoints."""

    model_config = ConfigDict(frozen=True)

    message: str


class DashboardResponse(BaseModel):
    model_config = ConfigDict(frozen=True)

    message: str
    user_id: int
    username: str


class ErrorDetail(BaseModel):
    """Machine-readable error payload."""

    model_config = ConfigDict(frozen=True)

    code: str
    message: str
    detail: Optional[str] = None


class ErrorResponse(BaseModel):
    """Top-level error envelope returned on 4xx/5xx responses."""

    model_config = ConfigDict(frozen=True)

    error: ErrorDetail


class HealthResponse(BaseModel):
    """Response for GET /health."""

    model_config = ConfigDict(frozen=True)

    status: str = "healthy"
    version: str
    components: dict[str, str]
