"""
NoteHub Web — Pydantic Schemas
================================

What:  Pydantic models for the remote notes API contract and our own
       JSON responses.
How:   The upstream API speaks camelCase (`createdAt`, `totalPages`);
       aliases map it onto snake_case attributes. `populate_by_name`
       lets tests and the query cache build models either way.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field


class NoteTag(str, Enum):
    """Category label on a note."""

    TODO = "Todo"
    PERSONAL = "Personal"
    WORK = "Work"
    MEETING = "Meeting"
    SHOPPING = "Shopping"


TAG_VALUES: List[str] = [tag.value for tag in NoteTag]


# ══════════════════════════════════════════════════════════════════════════
# Upstream Models — What the remote notes API returns
# ══════════════════════════════════════════════════════════════════════════


class Note(BaseModel):
    """
    What:  A single note as stored by the remote API.
    Who:   Returned by the API client for detail and list calls.

    The tag is kept as a plain string: the list view must still render
    notes the upstream tags with a label this front end doesn't know.
    """
    id: str = Field(description="Upstream note identifier")
    title: str = Field(description="Note title")
    content: str = Field(default="", description="Note body")
    tag: str = Field(description="Category label")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")
    updated_at: Optional[datetime] = Field(default=None, alias="updatedAt")

    model_config = {"populate_by_name": True}


class NotesPage(BaseModel):
    """
    What:  One page of notes from GET /notes.
    Who:   Stored in the query cache under ("notes", page, search, tag).
    """
    notes: List[Note] = Field(default_factory=list)
    total_pages: int = Field(default=0, ge=0, alias="totalPages")

    model_config = {"populate_by_name": True}


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What we send upstream
# ══════════════════════════════════════════════════════════════════════════


class NoteCreate(BaseModel):
    """
    What:  Payload for POST /notes.
    Who:   Built by NoteForm from already validated field values.
    """
    title: str
    content: str = ""
    tag: NoteTag


# ══════════════════════════════════════════════════════════════════════════
# Response Models — Our own JSON endpoints
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    What:  Standardized error body for /api/* errors.

    Example:
        {
            "error": "upstream_error",
            "message": "The notes service is unavailable. Please try again later.",
            "details": {"upstream_status": 503},
            "request_id": "a1b2c3d4"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and upstream status.
    Who:   Returned by GET /health.
    """
    status: str = Field(description="Overall service status: healthy, degraded")
    version: str = Field(description="Application version")
    notes_api: str = Field(description="Upstream API status: available, unavailable")
    cached_queries: int = Field(description="Entries currently held in the query cache")
    uptime_seconds: float = Field(description="Seconds since service started")


class NoteFormData(BaseModel):
    """
    What:  Raw note form fields posted as JSON to POST /api/notes.
    Why:   Loosely typed on purpose; the note form's own rules produce the
           field messages, so pydantic must not reject first.
    """
    title: str = ""
    content: str = ""
    tag: str = ""
