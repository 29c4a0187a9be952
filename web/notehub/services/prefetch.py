"""
NoteHub Web — Prefetch Gateway
================================

What:  Server-side fetch of the data a page needs before its first render.
How:   Builds a fresh QueryCache, performs one upstream read, and returns
       the cache's dehydrated state. The renderer hydrates that state into
       its own cache, so rendering never waits on a second fetch.
Who:   Called by the notes list and note detail route handlers.

Flow (GET /notes/filter/Work):
    slug ["Work"] → tag "Work" → fetch_notes(1, "", "Work")
        → cache[("notes", 1, "", "Work")] → dehydrate() → state

Errors are not caught here: an upstream failure propagates to the global
exception handlers like any other request error.
"""

import json
import logging
from typing import Any, Dict, Optional, Sequence, Tuple

from notehub.config import settings
from notehub.schemas.note import Note, NotesPage
from notehub.services.notes_api import NotesAPIClient
from notehub.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

ALL_NOTES = "all"


def resolve_tag(slug: Sequence[str]) -> Optional[str]:
    """
    Turn the catch-all path segments into a tag filter.

    >>> resolve_tag(["all"])
    >>> resolve_tag(["Work"])
    'Work'

    Only the first segment counts. The value is passed through unchecked;
    an unknown tag simply yields an empty list upstream.
    """
    if not slug:
        return None
    first = slug[0]
    return None if first == ALL_NOTES else first


def notes_query_key(page: int, search: str, tag: Optional[str]) -> Tuple[Any, ...]:
    return ("notes", page, search, tag)


def note_query_key(note_id: str) -> Tuple[Any, ...]:
    return ("note", note_id)


async def prefetch_notes(slug: Sequence[str], api: NotesAPIClient) -> Dict[str, Any]:
    """
    Prefetch page 1 of the notes list for the filter in `slug`.

    Returns:
        Dehydrated cache state holding exactly one query,
        ("notes", 1, "", tag).
    """
    tag = resolve_tag(slug)
    cache = QueryCache(stale_time=settings.query_stale_seconds)

    async def fetch() -> Dict[str, Any]:
        page = await api.fetch_notes(page=1, search="", tag=tag)
        return page.model_dump(mode="json", by_alias=True)

    await cache.prefetch(notes_query_key(1, "", tag), fetch)
    logger.info("Prefetched notes page 1 for tag=%s", tag or ALL_NOTES)
    return cache.dehydrate()


async def prefetch_note(note_id: str, api: NotesAPIClient) -> Dict[str, Any]:
    """Prefetch a single note for the detail page, keyed ("note", id)."""
    cache = QueryCache(stale_time=settings.query_stale_seconds)

    async def fetch() -> Dict[str, Any]:
        note = await api.fetch_note(note_id)
        return note.model_dump(mode="json", by_alias=True)

    await cache.prefetch(note_query_key(note_id), fetch)
    return cache.dehydrate()


# ══════════════════════════════════════════════════════════════════════════
# Cache-backed loaders used at render time
# ══════════════════════════════════════════════════════════════════════════


async def load_notes(
    cache: QueryCache,
    api: NotesAPIClient,
    page: int,
    search: str,
    tag: Optional[str],
) -> NotesPage:
    """
    Read a notes page through the cache.

    Right after hydration, page 1 with an empty search is a cache hit and
    no request is made. Anything else, including entries a note creation
    invalidated, goes upstream.
    """

    async def fetch() -> Dict[str, Any]:
        result = await api.fetch_notes(page=page, search=search, tag=tag)
        return result.model_dump(mode="json", by_alias=True)

    data = await cache.fetch(notes_query_key(page, search, tag), fetch)
    return NotesPage.model_validate(data)


async def load_note(cache: QueryCache, api: NotesAPIClient, note_id: str) -> Note:
    async def fetch() -> Dict[str, Any]:
        note = await api.fetch_note(note_id)
        return note.model_dump(mode="json", by_alias=True)

    data = await cache.fetch(note_query_key(note_id), fetch)
    return Note.model_validate(data)


def state_to_json(state: Dict[str, Any]) -> str:
    """
    Serialize a dehydrated state for embedding in a <script> tag.

    "</" is escaped so note content can never close the script element.
    """
    return json.dumps(state, separators=(",", ":")).replace("</", "<\\/")
