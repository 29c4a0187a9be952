"""
NoteHub Web — Test Configuration (conftest.py)
================================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy (all function-scoped):
    ├── make_note: factory for Note models
    ├── notes_page: a two-note NotesPage
    ├── mock_notes_api: NotesAPIClient double with AsyncMock methods
    ├── query_cache: fresh QueryCache
    └── test_client: HTTPX AsyncClient wired to the app with the two above
"""

import os
from datetime import datetime, timezone
from itertools import count
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# ══════════════════════════════════════════════════════════════════════════
# Environment Setup
# ══════════════════════════════════════════════════════════════════════════

# Set BEFORE any notehub import so the settings singleton picks them up
os.environ["NOTES_API_URL"] = "http://notes.test"
os.environ["NOTES_API_TOKEN"] = "test-token"
os.environ["API_RETRY_ATTEMPTS"] = "1"
os.environ["LOG_LEVEL"] = "WARNING"

from notehub.schemas.note import Note, NotesPage  # noqa: E402
from notehub.services.notes_api import NotesAPIClient  # noqa: E402
from notehub.services.query_cache import QueryCache  # noqa: E402


# ══════════════════════════════════════════════════════════════════════════
# Data Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def make_note():
    """
    Factory for Note instances with unique ids.

    Usage:
        note = make_note(title="Buy milk", tag="Shopping")
    """
    ids = count(1)

    def _make(title="Sample note", content="Some content", tag="Todo", **extra):
        return Note(
            id=extra.pop("id", f"note-{next(ids)}"),
            title=title,
            content=content,
            tag=tag,
            created_at=extra.pop("created_at", datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc)),
            **extra,
        )

    return _make


@pytest.fixture
def notes_page(make_note):
    """A single-page result with two notes."""
    return NotesPage(
        notes=[
            make_note(title="Team sync", content="Agenda", tag="Meeting"),
            make_note(title="Buy milk", content="2 liters", tag="Shopping"),
        ],
        total_pages=1,
    )


# ══════════════════════════════════════════════════════════════════════════
# Service Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_notes_api(notes_page, make_note):
    """
    Provides a NotesAPIClient double.

    What:    MagicMock shaped like NotesAPIClient; every upstream call is an AsyncMock.
    Usage:
        mock_notes_api.create_note.side_effect = NotesAPIError()
    """
    api = MagicMock(spec=NotesAPIClient)
    api.fetch_notes = AsyncMock(return_value=notes_page)
    api.fetch_note = AsyncMock(return_value=notes_page.notes[0])
    api.create_note = AsyncMock(
        side_effect=lambda payload: make_note(
            title=payload.title, content=payload.content, tag=payload.tag.value
        )
    )
    api.ping = AsyncMock(return_value=True)
    return api


@pytest.fixture
def query_cache():
    return QueryCache(stale_time=60.0)


@pytest_asyncio.fixture
async def test_client(mock_notes_api, query_cache):
    """
    Provides an async HTTP test client for endpoint testing.

    How:     ASGITransport routes requests straight into the app. The lifespan
             does not run, so the API client and cache come from
             dependency overrides instead of app.state.

    Usage:
        async def test_health(test_client):
            response = await test_client.get("/health")
            assert response.status_code == 200
    """
    from notehub.deps import get_notes_api, get_query_cache
    from notehub.main import app

    app.dependency_overrides[get_notes_api] = lambda: mock_notes_api
    app.dependency_overrides[get_query_cache] = lambda: query_cache

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
