"""
NoteHub Web — Note Creation Form
==================================

What:  Validation rules and the submit/cancel workflow for creating a note.
How:   `validate_note_form` is a plain function returning field → message
       pairs. `NoteForm` owns one form instance's values and state and
       receives its collaborators (API client, query cache, notifier,
       close callback) explicitly.
Who:   Driven by the create-note route handlers; usable on its own in tests.

State Machine (per form instance):
    IDLE ──submit──▶ VALIDATING ──invalid──▶ INVALID (editable)
                          │
                          └──valid──▶ SUBMITTING ──ok────▶ SUCCESS
                                           │              (invalidate, notify,
                                           │               reset, close)
                                           └──error──▶ FAILED (editable)

    While SUBMITTING the submit control is disabled and further submits
    are ignored.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, Mapping, Optional

from notehub.exceptions import NoteHubError
from notehub.schemas.note import TAG_VALUES, Note, NoteCreate, NoteTag
from notehub.services.notes_api import NotesAPIClient
from notehub.services.notifications import ToastQueue
from notehub.services.query_cache import QueryCache

logger = logging.getLogger(__name__)

TITLE_MIN_LENGTH = 3
TITLE_MAX_LENGTH = 50
CONTENT_MAX_LENGTH = 500

NOTES_QUERY_PREFIX = ("notes",)

SUCCESS_MESSAGE = "Note created successfully!"
FAILURE_MESSAGE = "Could not create the note. Please try again."


def initial_values() -> Dict[str, str]:
    return {"title": "", "content": "", "tag": NoteTag.TODO.value}


# ══════════════════════════════════════════════════════════════════════════
# Validation
# ══════════════════════════════════════════════════════════════════════════


@dataclass
class FormValidation:
    """Outcome of validating one submission. Empty `errors` means valid."""

    errors: Dict[str, str] = field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors


def validate_note_form(values: Mapping[str, Any]) -> FormValidation:
    """
    Check submitted note fields.

    Rules:
        title:   required; trimmed length in [3, 50]
        content: optional; length ≤ 500
        tag:     required; one of Todo, Personal, Work, Meeting, Shopping

    At most one message per field, the first rule that fails.
    """
    errors: Dict[str, str] = {}

    title = values.get("title")
    if title is None or not str(title).strip():
        errors["title"] = "Title is required"
    else:
        length = len(str(title).strip())
        if length < TITLE_MIN_LENGTH:
            errors["title"] = f"Title must have at least {TITLE_MIN_LENGTH} characters."
        elif length > TITLE_MAX_LENGTH:
            errors["title"] = f"Title must have at most {TITLE_MAX_LENGTH} characters."

    content = values.get("content") or ""
    if len(str(content)) > CONTENT_MAX_LENGTH:
        errors["content"] = f"Max limit {CONTENT_MAX_LENGTH} characters is reached!"

    tag = values.get("tag")
    if isinstance(tag, NoteTag):
        tag = tag.value
    if not tag:
        errors["tag"] = "Tag is required"
    elif tag not in TAG_VALUES:
        errors["tag"] = "Invalid tag selected"

    return FormValidation(errors=errors)


# ══════════════════════════════════════════════════════════════════════════
# Form Workflow
# ══════════════════════════════════════════════════════════════════════════


class FormState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    INVALID = "invalid"
    SUBMITTING = "submitting"
    SUCCESS = "success"
    FAILED = "failed"


class NoteForm:
    """
    One note creation form instance.

    Collaborators:
        api:      issues the create request
        cache:    query cache whose ("notes", ...) entries go stale on success
        notifier: receives success/error toasts
        on_close: called when the form should close (success or cancel)
    """

    def __init__(
        self,
        api: NotesAPIClient,
        cache: QueryCache,
        notifier: ToastQueue,
        on_close: Callable[[], None],
    ):
        self.api = api
        self.cache = cache
        self.notifier = notifier
        self._on_close = on_close
        self.values: Dict[str, str] = initial_values()
        self.errors: Dict[str, str] = {}
        self.state = FormState.IDLE
        self.closed = False
        self.created: Optional[Note] = None
        self.error: Optional[NoteHubError] = None

    @property
    def is_pending(self) -> bool:
        return self.state == FormState.SUBMITTING

    @property
    def submit_disabled(self) -> bool:
        return self.is_pending

    def reset(self) -> None:
        self.values = initial_values()
        self.errors = {}

    async def submit(self, values: Mapping[str, Any]) -> bool:
        """
        Validate and, if valid, create the note.

        Returns:
            True when the note was created, False otherwise (invalid input,
            upstream failure, or a submission already in flight).
        """
        if self.is_pending:
            logger.warning("Ignoring submit while a create request is in flight")
            return False

        self.values = {
            "title": str(values.get("title") or ""),
            "content": str(values.get("content") or ""),
            "tag": _tag_value(values.get("tag")),
        }

        self.state = FormState.VALIDATING
        validation = validate_note_form(self.values)
        if not validation.is_valid:
            self.errors = validation.errors
            self.state = FormState.INVALID
            logger.info("Note form rejected: %s", sorted(self.errors))
            return False

        self.errors = {}
        self.error = None
        self.state = FormState.SUBMITTING
        payload = NoteCreate(
            title=self.values["title"],
            content=self.values["content"],
            tag=NoteTag(self.values["tag"]),
        )

        try:
            self.created = await self.api.create_note(payload)
        except NoteHubError as e:
            self.state = FormState.FAILED
            self.error = e
            logger.warning("Note creation failed: %s | Context: %s", e.message, e.context)
            if not self.closed:
                self.notifier.error(FAILURE_MESSAGE)
            return False
        except Exception:
            # Leave SUBMITTING so the form stays editable, then propagate.
            self.state = FormState.FAILED
            logger.error("Unexpected error creating note", exc_info=True)
            if not self.closed:
                self.notifier.error(FAILURE_MESSAGE)
            raise

        self.state = FormState.SUCCESS
        # The note exists upstream even if the form was closed meanwhile.
        self.cache.invalidate(NOTES_QUERY_PREFIX)
        if self.closed:
            logger.info("Note %s created after its form was closed", self.created.id)
            return True

        self.notifier.success(SUCCESS_MESSAGE)
        self.reset()
        self._close()
        return True

    def cancel(self) -> None:
        """Close without submitting or touching the cache."""
        self._close()

    def _close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._on_close()


def _tag_value(tag: Any) -> str:
    if isinstance(tag, NoteTag):
        return tag.value
    return str(tag) if tag is not None else ""
