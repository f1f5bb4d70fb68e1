"""
asgi.py -- Entry point that serves the LRM2E JSON API and HTML pages together.

api/main.py builds the FastAPI app (middleware, lifespan, /api routers);
web/routes.py holds the server-rendered pages. Neither imports the other, so
the pages are attached here. Both share the same app.state.auth and
app.state.contact, which is what lets a form login and an /api call see the
same session.

Run with:  uvicorn asgi:app --reload
"""

from api.main import app
from web.routes import router as web_router

# Registered after the /api routers, so an /api path never falls through to a page.
app.include_router(web_router, tags=["Web UI"])
