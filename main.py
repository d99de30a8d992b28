#!/usr/bin/env python3
"""
Accountdesk -- user registration, login and session-gated access service.

Usage:
  python main.py
  python main.py --reload

Environment variables (or .env):
  DATABASE_URL     Required. SQLAlchemy URL, e.g. sqlite:///accountdesk.db
  SESSION_SECRET   Required. At least 32 characters; signs the session cookie.
  PORT             Listening port (default 5000).
  ENVIRONMENT      "production" turns on Secure session cookies.
"""

import argparse
import sys

import uvicorn
from pydantic import ValidationError

from core.config import get_settings


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the Accountdesk API server.")
    parser.add_argument("--reload", action="store_true", help="Restart on code changes (development only).")
    args = parser.parse_args()

    # Validate configuration before uvicorn imports the app or binds a socket.
    try:
        settings = get_settings()
    except ValidationError as exc:
        print(f"  [!] Invalid configuration:\n{exc}", file=sys.stderr)
        return 1

    uvicorn.run(
        "asgi:app",
        host=settings.host,
        port=settings.port,
        reload=args.reload,
        log_level=settings.log_level.lower(),
    )
    return 0


if __name__ == "__main__":
    sys.exit(main())
