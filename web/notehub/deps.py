"""
NoteHub Web — Route Dependencies
==================================

What:  FastAPI dependency providers for the shared API client, the query
       cache and the template renderer.
How:   The client and cache are created in the lifespan and kept on
       app.state; these providers hand them to route handlers. Tests swap
       them through `app.dependency_overrides`.
"""

from pathlib import Path

from fastapi import Request
from fastapi.templating import Jinja2Templates

from notehub.schemas.note import TAG_VALUES
from notehub.services.notes_api import NotesAPIClient
from notehub.services.query_cache import QueryCache

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
templates.env.globals["TAGS"] = TAG_VALUES


def get_notes_api(request: Request) -> NotesAPIClient:
    """Get the NotesAPIClient created at startup."""
    return request.app.state.notes_api


def get_query_cache(request: Request) -> QueryCache:
    """Get the application query cache."""
    return request.app.state.query_cache
