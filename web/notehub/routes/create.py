"""
NoteHub Web — Create Note Route Handlers
==========================================

What:  GET renders an empty note form; POST validates and creates the note.
How:   Each POST builds a NoteForm with the shared API client and query
       cache. The form's close callback turns into a 303 redirect back to
       the list, carrying toasts in the flash cookie.

Responses (POST /notes/action/create):
    action=cancel       → 303 to `back`, nothing submitted
    invalid fields      → 422, form re-rendered with inline errors
    upstream failure    → 502, form re-rendered with values and an error toast
    created             → 303 to `back` with "Note created successfully!"

POST /api/notes takes the same fields as JSON: 201 with the note, 400 with
field errors, or 502.
"""

import logging
from urllib.parse import urlsplit

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse

from notehub.deps import get_notes_api, get_query_cache, templates
from notehub.exceptions import ValidationError
from notehub.schemas.note import Note, NoteFormData
from notehub.services.note_form import FormState, NoteForm, initial_values
from notehub.services.notes_api import NotesAPIClient
from notehub.services.notifications import ToastQueue, write_flash
from notehub.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/notes/action", tags=["Notes"])

DEFAULT_BACK_URL = "/notes/filter/all"
UNSAFE_URL_CHARS = ("\\", "\t", "\r", "\n")


def safe_back_url(url: str) -> str:
    """Only same-site absolute paths; anything else falls back to the list."""
    # Browsers read a backslash as a slash and drop tabs and newlines,
    # so "/\evil.com" and "/<tab>/evil.com" both mean "//evil.com".
    if any(ch in url for ch in UNSAFE_URL_CHARS):
        return DEFAULT_BACK_URL
    parts = urlsplit(url)
    if url.startswith("/") and not url.startswith("//") and not parts.scheme and not parts.netloc:
        return url
    return DEFAULT_BACK_URL


def _render_form(request: Request, form_values, errors, toasts, back: str, status_code: int = 200):
    return templates.TemplateResponse(
        request,
        "note_form.html",
        {
            "values": form_values,
            "errors": errors,
            "toasts": toasts,
            "back": back,
        },
        status_code=status_code,
        headers={"Cache-Control": "no-store"},
    )


@router.get("/create", response_class=HTMLResponse, summary="New note form")
async def create_note_form(request: Request, back: str = DEFAULT_BACK_URL):
    return _render_form(request, initial_values(), {}, [], safe_back_url(back))


@router.post("/create", response_class=HTMLResponse, summary="Submit a new note")
async def create_note_submit(
    request: Request,
    title: str = Form(default=""),
    content: str = Form(default=""),
    tag: str = Form(default=""),
    action: str = Form(default="submit"),
    back: str = Form(default=DEFAULT_BACK_URL),
    api: NotesAPIClient = Depends(get_notes_api),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Drive one NoteForm submission and translate its outcome into HTTP.

    Field-level validation never reaches the upstream API; the 422 page
    shows the messages next to each field.
    """
    back = safe_back_url(back)
    toasts = ToastQueue()

    def close() -> None:
        logger.debug("Note form closed")

    form = NoteForm(api=api, cache=cache, notifier=toasts, on_close=close)

    if action == "cancel":
        form.cancel()
        return RedirectResponse(url=back, status_code=303)

    await form.submit({"title": title, "content": content, "tag": tag})

    if form.closed:
        response = RedirectResponse(url=back, status_code=303)
        write_flash(response, toasts.drain())
        return response

    status_code = 422 if form.state == FormState.INVALID else 502
    return _render_form(request, form.values, form.errors, toasts.drain(), back, status_code)


api_router = APIRouter(prefix="/api", tags=["Notes"])


@api_router.post(
    "/notes",
    status_code=201,
    response_model=Note,
    response_model_by_alias=True,
    summary="Create a note from JSON",
)
async def create_note_json(
    payload: NoteFormData,
    api: NotesAPIClient = Depends(get_notes_api),
    cache: QueryCache = Depends(get_query_cache),
):
    """
    Same workflow as the HTML form for script clients.

    Errors:
        400 validation_error with `details.errors` keyed by field
        502 upstream_error when the notes API rejects or is unreachable
    """
    form = NoteForm(api=api, cache=cache, notifier=ToastQueue(), on_close=lambda: None)
    await form.submit(payload.model_dump())

    if form.state == FormState.INVALID:
        raise ValidationError("Note has invalid fields", errors=form.errors)
    if form.error is not None:
        raise form.error
    return form.created
