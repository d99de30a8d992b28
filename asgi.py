"""
asgi.py -- Application assembly for Accountdesk.

This is the ONLY file that imports from both api/ and web/. It joins the two
independent layers into a single ASGI app without coupling them to each other.
api/main.py knows nothing about web/; web/routes.py knows nothing about api/.

Run with:  uvicorn asgi:app --reload
           python main.py
"""

from api.main import create_app
from web.routes import router as web_router

# Settings are loaded (and validated) here, at import time -- a missing
# DATABASE_URL or SESSION_SECRET stops the process before uvicorn binds.
app = create_app()
app.include_router(web_router, tags=["Web UI"])
