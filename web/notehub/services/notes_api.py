"""
NoteHub Web — Remote Notes API Client
=======================================

What:  Async client for the upstream notes service (list / read / create).
How:   Wraps an httpx.AsyncClient configured with the base URL, timeout
       and optional bearer token. Upstream failures are translated into
       NotesAPIError / NotFoundError so route handlers and the note form
       never see httpx exceptions.
Who:   Created once in the application lifespan and injected through
       `get_notes_api`; used by the prefetch gateway, the list view and
       the note form.

Upstream contract:
    GET  /notes?page=1&perPage=12&search=milk&tag=Work → {"notes": [...], "totalPages": 3}
    GET  /notes/{id}                                   → {...note...}
    POST /notes  {"title", "content", "tag"}           → {...note...}

Retry Strategy:
    Reads go through tenacity with `api_retry_attempts` (default 1, i.e.
    no retry). Only transport errors are retried; an upstream 4xx/5xx is
    an answer, not a glitch. Creates are never retried: a timed-out POST
    may still have created the note.
"""

import logging
import time
from typing import Any, Dict, Optional

import httpx
from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    wait_random,
)

from notehub.config import Settings, settings
from notehub.exceptions import NotesAPIError, NotFoundError
from notehub.schemas.note import Note, NoteCreate, NotesPage

logger = logging.getLogger(__name__)


def build_http_client(config: Settings = settings, **kwargs: Any) -> httpx.AsyncClient:
    """
    Create the shared httpx.AsyncClient for the upstream API.

    Extra keyword arguments are passed to httpx (tests pass `transport=`).
    """
    headers = {"Accept": "application/json"}
    if config.notes_api_token:
        headers["Authorization"] = f"Bearer {config.notes_api_token}"
    return httpx.AsyncClient(
        base_url=config.notes_api_url,
        headers=headers,
        timeout=httpx.Timeout(config.api_timeout),
        **kwargs,
    )


def _upstream_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("message") or body.get("error")
    return None


class NotesAPIClient:
    """
    Thin typed facade over the upstream notes endpoints.

    Error Handling Chain:
        httpx.TransportError → retried (reads only) → NotesAPIError(status=None)
        404 on detail        → NotFoundError
        other non-2xx        → NotesAPIError(status=<upstream status>)
        malformed body       → NotesAPIError
    """

    def __init__(self, http: httpx.AsyncClient, per_page: int = settings.notes_per_page):
        self.http = http
        self.per_page = per_page

    async def fetch_notes(self, page: int = 1, search: str = "", tag: Optional[str] = None) -> NotesPage:
        """
        Fetch one page of notes.

        Args:
            page: 1-based page number, passed through as-is
            search: Free-text filter; omitted from the query when empty
            tag: Tag filter; omitted when None (the "all" filter)
        """
        params: Dict[str, Any] = {"page": page, "perPage": self.per_page}
        if search:
            params["search"] = search
        if tag is not None:
            params["tag"] = tag

        response = await self._read("/notes", params=params)
        return self._parse(NotesPage, response)

    async def fetch_note(self, note_id: str) -> Note:
        response = await self._read(f"/notes/{note_id}", resource_id=note_id)
        return self._parse(Note, response)

    async def create_note(self, payload: NoteCreate) -> Note:
        """
        Create a note upstream. Sent exactly once.

        Raises:
            NotesAPIError: Transport failure or non-2xx response
        """
        body = payload.model_dump(mode="json")
        start_time = time.perf_counter()
        try:
            response = await self.http.post("/notes", json=body)
        except httpx.TransportError as e:
            logger.error("Create note failed: %s: %s", type(e).__name__, str(e))
            raise NotesAPIError(context={"operation": "create", "error_type": type(e).__name__})

        self._raise_for_status(response, operation="create")
        note = self._parse(Note, response)
        logger.info(
            "Created note %s (tag=%s) in %.0fms",
            note.id,
            note.tag,
            (time.perf_counter() - start_time) * 1000,
        )
        return note

    async def ping(self) -> bool:
        """Lightweight reachability check used by /health. Never raises."""
        try:
            response = await self.http.get("/notes", params={"page": 1, "perPage": 1})
        except httpx.HTTPError as e:
            logger.warning("Notes API ping failed: %s", str(e))
            return False
        return response.status_code < 500

    # ── Internals ─────────────────────────────────────────────────────────

    async def _read(
        self,
        path: str,
        params: Optional[Dict[str, Any]] = None,
        resource_id: Optional[str] = None,
    ) -> httpx.Response:
        try:
            response = await self._get_with_retry(path, params)
        except httpx.TransportError as e:
            logger.error("GET %s failed: %s: %s", path, type(e).__name__, str(e))
            raise NotesAPIError(context={"path": path, "error_type": type(e).__name__})

        if response.status_code == 404 and resource_id is not None:
            raise NotFoundError(resource="note", resource_id=resource_id)
        self._raise_for_status(response, operation=f"GET {path}")
        return response

    @retry(
        retry=retry_if_exception_type(httpx.TransportError),
        stop=stop_after_attempt(settings.api_retry_attempts),
        # wait = min(max_wait, min_wait * 2^attempt) + random(0, 1)
        wait=wait_exponential(
            multiplier=settings.retry_min_wait,
            max=settings.retry_max_wait,
        )
        + wait_random(0, 1),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    async def _get_with_retry(self, path: str, params: Optional[Dict[str, Any]]) -> httpx.Response:
        start_time = time.perf_counter()
        response = await self.http.get(path, params=params)
        logger.debug(
            "GET %s %s → %d in %.0fms",
            path,
            params or {},
            response.status_code,
            (time.perf_counter() - start_time) * 1000,
        )
        return response

    @staticmethod
    def _raise_for_status(response: httpx.Response, operation: str) -> None:
        if response.is_success:
            return
        upstream = _upstream_message(response)
        logger.warning(
            "Notes API %s returned %d: %s", operation, response.status_code, upstream or "-"
        )
        raise NotesAPIError(
            status_code=response.status_code,
            context={"operation": operation, "upstream_message": upstream},
        )

    @staticmethod
    def _parse(model, response: httpx.Response):
        try:
            return model.model_validate(response.json())
        except ValueError as e:
            # pydantic.ValidationError subclasses ValueError, as does a JSON decode error
            logger.error("Unexpected notes API payload: %s", str(e))
            raise NotesAPIError(
                message="The notes service returned an unexpected response.",
                status_code=response.status_code,
            )
