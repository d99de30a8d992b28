"""
core/config.py -- Centralized application configuration via pydantic-settings.

All environment variable reads for Accountdesk happen here. No module should
call os.getenv() or os.environ.get() directly -- import get_settings() instead,
or accept a Settings instance from the caller (create_app() does the latter).

Design patterns used:
  Singleton via lru_cache: get_settings() instantiates Settings once at first
      call and returns the cached instance on every subsequent call.

  BaseSettings (pydantic-settings): Reads values from environment variables
      and an optional .env file automatically. Field names map to env var names
      (e.g. session_secret -> SESSION_SECRET). Type coercion and validation are
      built in.

  frozen=True: the resolved configuration is immutable once loaded. Components
      receive it at construction and never mutate it.

Startup policy:
  DATABASE_URL and SESSION_SECRET are required. Missing either one is a hard
  startup failure -- the process must not serve traffic with no store or with
  an unsigned session cookie. The error is raised while building Settings,
  i.e. before the ASGI app exists and before any listener binds.

Layer rule: core/ is the kernel. This module may not import from api/, web/,
auth/ or contact/.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

_LOG_FORMAT = "%(asctime)s %(levelname)-5s %(name)s %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


class Settings(BaseSettings):
    """Application settings loaded from environment variables and .env file.

    database_url and session_secret default to the empty string, which is the
    sentinel for "not configured" -- the model_validator turns that into a
    startup error. Every other field has a working default.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        frozen=True,
    )

    # ------------------------------------------------------------------
    # Required
    # ------------------------------------------------------------------

    database_url: str = ""
    session_secret: str = ""

    # ------------------------------------------------------------------
    # Server
    # ------------------------------------------------------------------

    environment: str = "development"
    host: str = "127.0.0.1"
    port: int = 5000
    log_level: str = "INFO"

    # Comma-separated in the environment: ALLOWED_ORIGINS=http://a,http://b
    allowed_origins: Annotated[list[str], NoDecode] = ["http://localhost:5173"]
    allowed_hosts: Annotated[list[str], NoDecode] = ["*"]

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    session_cookie_name: str = "sid"
    session_max_age_seconds: int = 60 * 60 * 24  # 24 hours, absolute
    session_backend: str = "database"  # "database" or "memory"

    # ------------------------------------------------------------------
    # Passwords and rate limiting
    # ------------------------------------------------------------------

    bcrypt_rounds: int = 10
    rate_limit_enabled: bool = True

    # ------------------------------------------------------------------
    # Validators
    # ------------------------------------------------------------------

    @field_validator("allowed_origins", "allowed_hosts", mode="before")
    @classmethod
    def _split_csv(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @field_validator("session_backend")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        if value not in ("database", "memory"):
            raise ValueError("SESSION_BACKEND must be 'database' or 'memory'.")
        return value

    @field_validator("bcrypt_rounds")
    @classmethod
    def _check_rounds(cls, value: int) -> int:
        # bcrypt.gensalt() accepts 4..31
        if not 4 <= value <= 31:
            raise ValueError("BCRYPT_ROUNDS must be between 4 and 31.")
        return value

    @model_validator(mode="after")
    def validate_required(self) -> "Settings":
        """Refuse to build a configuration without a store or a session secret.

        Short secrets (<32 chars) are rejected as well: the session cookie
        signature is only as strong as the key behind it.
        """
        if not self.database_url:
            raise ValueError("DATABASE_URL is required. Set it in your environment or .env file.")
        if not self.session_secret:
            raise ValueError("SESSION_SECRET is required. Set it in your environment or .env file.")
        if len(self.session_secret) < 32:
            raise ValueError("SESSION_SECRET must be at least 32 characters.")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"


@lru_cache
def get_settings() -> Settings:
    """Return the application Settings singleton.

    In tests: call get_settings.cache_clear() between test cases if you need
    to inject different environment variables, or build Settings(...) directly
    and hand it to create_app().
    """
    return Settings()


def configure_logging(settings: Settings) -> None:
    """Configure root logging once for the process."""
    logging.basicConfig(
        level=settings.log_level.upper(),
        format=_LOG_FORMAT,
        datefmt=_LOG_DATEFMT,
    )
