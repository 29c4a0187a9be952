"""
NoteHub Web — Notes Route Handlers
====================================

What:  Notes list (filtered by tag), note detail, and the JSON list used
       by client-side paging/search.
How:   Page routes run the prefetch gateway, hydrate the application query
       cache with the result, then render from the cache.
Who:   Browsers navigating /notes/filter/<tag> and /notes/<id>.

Caching:
    - HTML pages: no-store (they embed toasts and user-specific state)
    - GET /api/notes: served through the query cache, short private max-age
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response
from fastapi.responses import HTMLResponse, RedirectResponse

from notehub.deps import get_notes_api, get_query_cache, templates
from notehub.schemas.note import ErrorResponse, NotesPage
from notehub.services.notes_api import NotesAPIClient
from notehub.services.notifications import clear_flash, read_flash
from notehub.services.prefetch import (
    ALL_NOTES,
    load_note,
    load_notes,
    prefetch_note,
    prefetch_notes,
    resolve_tag,
    state_to_json,
)
from notehub.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Notes"])


@router.get("/", include_in_schema=False)
async def index() -> RedirectResponse:
    return RedirectResponse(url=f"/notes/filter/{ALL_NOTES}", status_code=302)


@router.get(
    "/notes/filter/{slug:path}",
    response_class=HTMLResponse,
    summary="Notes list filtered by tag",
)
async def notes_by_category(
    request: Request,
    slug: str,
    page: int = Query(default=1, ge=1, description="1-based page number"),
    search: str = Query(default="", max_length=100, description="Free-text search"),
    api: NotesAPIClient = Depends(get_notes_api),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Render the notes list for the tag in the first path segment.

    Flow:
        1. prefetch_notes() fetches page 1 into a fresh cache and dehydrates it
        2. The application cache hydrates that state
        3. The requested page is read through the cache (a hit for page 1)

    `all` as the first segment means no tag filter. Upstream failures are
    not handled here; the global handlers render the error page.
    """
    segments = [segment for segment in slug.split("/") if segment]
    tag = resolve_tag(segments)

    state = await prefetch_notes(segments, api)
    cache.hydrate(state)

    notes_page = await load_notes(cache, api, page=page, search=search, tag=tag)

    response = templates.TemplateResponse(
        request,
        "notes_list.html",
        {
            "notes": notes_page.notes,
            "total_pages": notes_page.total_pages,
            "page": page,
            "search": search,
            "tag": tag,
            "filter_slug": tag or ALL_NOTES,
            "dehydrated_state": state_to_json(state),
            "toasts": read_flash(request),
        },
        headers={"Cache-Control": "no-store"},
    )
    clear_flash(request, response)
    return response


@router.get(
    "/notes/{note_id}",
    response_class=HTMLResponse,
    summary="Single note detail",
)
async def note_details(
    request: Request,
    note_id: str,
    api: NotesAPIClient = Depends(get_notes_api),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Render one note. Unknown ids surface as 404 through NotFoundError.
    """
    state = await prefetch_note(note_id, api)
    cache.hydrate(state)
    note = await load_note(cache, api, note_id)

    return templates.TemplateResponse(
        request,
        "note_detail.html",
        {"note": note, "dehydrated_state": state_to_json(state)},
        headers={"Cache-Control": "no-store"},
    )


@router.get(
    "/api/notes",
    response_model=NotesPage,
    response_model_by_alias=True,
    responses={
        200: {"description": "One page of notes", "model": NotesPage},
        502: {"description": "Notes API failed", "model": ErrorResponse},
    },
    summary="List notes through the query cache",
)
async def list_notes(
    response: Response,
    page: int = Query(default=1, ge=1),
    search: str = Query(default="", max_length=100),
    tag: Optional[str] = Query(default=None, description="Tag filter; 'all' or omitted for none"),
    api: NotesAPIClient = Depends(get_notes_api),
    cache: QueryCache = Depends(get_query_cache),
) -> NotesPage:
    """
    Client-side fetch path: same cache keys as the server prefetch, so a
    page hydrated by a render is served without another upstream call.
    """
    resolved = resolve_tag([tag]) if tag else None
    result = await load_notes(cache, api, page=page, search=search, tag=resolved)
    response.headers["X-Total-Pages"] = str(result.total_pages)
    response.headers["Cache-Control"] = "private, max-age=5"
    return result
