"""
NoteHub Web — Route Tests
===========================

What:  End-to-end request tests through the ASGI app.
How:   The notes API is a mock and the query cache a fresh instance, both
       injected with dependency overrides (see conftest.test_client).

What we test:
    ✅ Filtered list page: one upstream call, tag resolution, embedded state
    ✅ Upstream failure renders the 502 error page
    ✅ Create form: 422 inline errors, 303 on success with flash toast, cancel, implicit submit, back URL checks
    ✅ JSON list served from the cache after a page render
    ✅ JSON create: 201, 400 field errors, 502
    ✅ Detail 404 and /health
"""

import json
import re

import pytest

from notehub.exceptions import NotesAPIError, NotFoundError
from notehub.services.notifications import FLASH_COOKIE


def _embedded_state(html: str) -> dict:
    match = re.search(r'<script id="notehub-state" type="application/json">(.*?)</script>', html, re.S)
    assert match, "dehydrated state not embedded"
    return json.loads(match.group(1))


class TestNotesList:

    @pytest.mark.asyncio
    async def test_all_renders_unfiltered_list(self, test_client, mock_notes_api):
        response = await test_client.get("/notes/filter/all")

        assert response.status_code == 200
        assert "Team sync" in response.text
        assert "Buy milk" in response.text
        mock_notes_api.fetch_notes.assert_awaited_once_with(page=1, search="", tag=None)

    @pytest.mark.asyncio
    async def test_tag_segment_filters(self, test_client, mock_notes_api):
        response = await test_client.get("/notes/filter/Work")

        assert response.status_code == 200
        mock_notes_api.fetch_notes.assert_awaited_once_with(page=1, search="", tag="Work")
        state = _embedded_state(response.text)
        assert state["queries"][0]["key"] == ["notes", 1, "", "Work"]

    @pytest.mark.asyncio
    async def test_second_page_fetched_through_cache(self, test_client, mock_notes_api, query_cache):
        response = await test_client.get("/notes/filter/all", params={"page": 2})

        assert response.status_code == 200
        assert mock_notes_api.fetch_notes.await_count == 2
        assert ("notes", 2, "", None) in query_cache

    @pytest.mark.asyncio
    async def test_upstream_failure_renders_error_page(self, test_client, mock_notes_api):
        mock_notes_api.fetch_notes.side_effect = NotesAPIError(status_code=500)

        response = await test_client.get("/notes/filter/all")

        assert response.status_code == 502
        assert "Something went wrong" in response.text
        assert response.headers["X-Request-ID"] in response.text

    @pytest.mark.asyncio
    async def test_root_redirects_to_all(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 302
        assert response.headers["location"] == "/notes/filter/all"


class TestJsonList:

    @pytest.mark.asyncio
    async def test_served_from_hydrated_cache(self, test_client, mock_notes_api):
        await test_client.get("/notes/filter/Meeting")
        response = await test_client.get("/api/notes", params={"tag": "Meeting"})

        assert response.status_code == 200
        body = response.json()
        assert body["totalPages"] == 1
        assert len(body["notes"]) == 2
        assert response.headers["X-Total-Pages"] == "1"
        mock_notes_api.fetch_notes.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_upstream_failure_is_json(self, test_client, mock_notes_api):
        mock_notes_api.fetch_notes.side_effect = NotesAPIError(status_code=503)

        response = await test_client.get("/api/notes")

        assert response.status_code == 502
        assert response.json()["error"] == "upstream_error"
        assert response.json()["details"] == {"upstream_status": 503}


class TestCreateNote:

    @pytest.mark.asyncio
    async def test_form_renders_initial_values(self, test_client):
        response = await test_client.get("/notes/action/create")

        assert response.status_code == 200
        assert 'name="title" value=""' in response.text
        assert '<option value="Todo" selected>' in response.text

    @pytest.mark.asyncio
    async def test_invalid_submission_shows_inline_errors(self, test_client, mock_notes_api):
        response = await test_client.post(
            "/notes/action/create", data={"title": "Hi", "content": "", "tag": "Todo"}
        )

        assert response.status_code == 422
        assert "Title must have at least 3 characters." in response.text
        mock_notes_api.create_note.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_valid_submission_redirects_with_toast(self, test_client, mock_notes_api, query_cache):
        await test_client.get("/notes/filter/all")

        response = await test_client.post(
            "/notes/action/create",
            data={"title": "Buy milk", "content": "2 liters", "tag": "Shopping"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/notes/filter/all"
        assert FLASH_COOKIE in response.cookies
        payload = mock_notes_api.create_note.await_args.args[0]
        assert (payload.title, payload.content, payload.tag.value) == ("Buy milk", "2 liters", "Shopping")
        assert query_cache.is_stale(("notes", 1, "", None))

        follow = await test_client.get("/notes/filter/all")
        assert "Note created successfully!" in follow.text
        assert mock_notes_api.fetch_notes.await_count == 2

    @pytest.mark.asyncio
    async def test_back_url_is_kept_on_site(self, test_client):
        response = await test_client.post(
            "/notes/action/create",
            data={"title": "Buy milk", "tag": "Shopping", "back": "https://evil.example"},
        )

        assert response.headers["location"] == "/notes/filter/all"

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "back",
        ["/\\evil.example", "/\t/evil.example", "https://evil.example/notes", "notes/filter/all"],
    )
    async def test_back_url_lookalikes_fall_back_to_list(self, test_client, back):
        response = await test_client.post(
            "/notes/action/create", data={"action": "cancel", "back": back}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/notes/filter/all"

    @pytest.mark.asyncio
    async def test_enter_key_submission_creates_note(self, test_client, mock_notes_api):
        form_page = await test_client.get("/notes/action/create")
        buttons = re.findall(r'<button type="submit"[^>]*>', form_page.text)
        assert buttons and 'value="submit"' in buttons[0]
        assert 'value="cancel"' not in form_page.text

        response = await test_client.post(
            "/notes/action/create", data={"title": "Buy milk", "content": "", "tag": "Shopping"}
        )

        assert response.status_code == 303
        mock_notes_api.create_note.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cancel_does_not_submit(self, test_client, mock_notes_api):
        response = await test_client.post(
            "/notes/action/create",
            data={"title": "Buy milk", "tag": "Shopping", "action": "cancel", "back": "/notes/filter/Work"},
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/notes/filter/Work"
        mock_notes_api.create_note.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_failure_rerenders_form(self, test_client, mock_notes_api):
        mock_notes_api.create_note.side_effect = NotesAPIError(status_code=500)

        response = await test_client.post(
            "/notes/action/create",
            data={"title": "Buy milk", "content": "2 liters", "tag": "Shopping"},
        )

        assert response.status_code == 502
        assert 'value="Buy milk"' in response.text
        assert "Could not create the note." in response.text


class TestCreateNoteJson:

    @pytest.mark.asyncio
    async def test_created_note_returned(self, test_client, mock_notes_api, query_cache):
        await test_client.get("/notes/filter/all")

        response = await test_client.post(
            "/api/notes", json={"title": "Buy milk", "content": "2 liters", "tag": "Shopping"}
        )

        assert response.status_code == 201
        assert response.json()["title"] == "Buy milk"
        assert query_cache.is_stale(("notes", 1, "", None))

    @pytest.mark.asyncio
    async def test_invalid_fields_are_400(self, test_client, mock_notes_api):
        response = await test_client.post("/api/notes", json={"title": "", "tag": "Urgent"})

        assert response.status_code == 400
        assert response.json()["details"]["errors"] == {
            "title": "Title is required",
            "tag": "Invalid tag selected",
        }
        mock_notes_api.create_note.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upstream_failure_is_502(self, test_client, mock_notes_api):
        mock_notes_api.create_note.side_effect = NotesAPIError(status_code=500)

        response = await test_client.post("/api/notes", json={"title": "Buy milk", "tag": "Work"})

        assert response.status_code == 502
        assert response.json()["error"] == "upstream_error"


class TestNoteDetail:

    @pytest.mark.asyncio
    async def test_renders_note(self, test_client, mock_notes_api):
        response = await test_client.get("/notes/note-1")

        assert response.status_code == 200
        assert "Team sync" in response.text
        mock_notes_api.fetch_note.assert_awaited_once_with("note-1")

    @pytest.mark.asyncio
    async def test_missing_note_is_404(self, test_client, mock_notes_api):
        mock_notes_api.fetch_note.side_effect = NotFoundError(resource="note", resource_id="nope")

        response = await test_client.get("/notes/nope")

        assert response.status_code == 404
        assert "was not found" in response.text


class TestHealth:

    @pytest.mark.asyncio
    async def test_healthy(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        assert response.json()["status"] == "healthy"
        assert response.json()["notes_api"] == "available"

    @pytest.mark.asyncio
    async def test_degraded_when_upstream_down(self, test_client, mock_notes_api):
        mock_notes_api.ping.return_value = False

        response = await test_client.get("/health")

        assert response.json()["status"] == "degraded"
