"""
api/limiter.py -- The one slowapi Limiter for the whole app.

api/main.py mounts it (app.state.limiter + SlowAPIMiddleware); route modules
decorate with @limiter.limit(). Counters live in this instance's memory
storage, so every route must use this object rather than building its own.
create_app() switches it on or off from Settings.rate_limit_enabled.
"""

from slowapi import Limiter
from slowapi.util import get_remote_address

# Per-IP limit for the credential endpoints (POST /login, POST /register).
CREDENTIALS_LIMIT = "10/minute"

limiter = Limiter(key_func=get_remote_address, storage_uri="memory://")
