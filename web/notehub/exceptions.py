"""
NoteHub Web — Custom Exception Hierarchy
==========================================

What:  Defines application-specific exceptions for different error scenarios.
How:   Each exception class carries a message and optional context dict.
       Global exception handlers (registered in main.py) catch these and
       return either a JSON error body (for /api/* paths) or the rendered
       error page, with the correct HTTP status code.
Who:   Raised by services and route handlers; caught by global handlers.

Exception Hierarchy:
    NoteHubError (base)
    ├── ValidationError   → 400 Bad Request (client can fix)
    ├── NotFoundError     → 404 Not Found
    └── NotesAPIError     → 502 Bad Gateway (upstream notes API failed)
"""

from typing import Any, Dict, Optional


class NoteHubError(Exception):
    """
    Base exception for all NoteHub application errors.

    Attributes:
        message:  User-facing error description (safe to show)
        context:  Additional debug info (logged but NOT shown to the user)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(NoteHubError):
    """
    Raised when client input fails validation.

    What:    The client sent data that can be corrected and resubmitted.
    When:    Bad query parameters, or a form submitted outside the HTML flow.
    HTTP:    400 Bad Request

    `errors` maps field name to message, the same shape the note form
    renders inline.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        errors: Optional[Dict[str, str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if errors:
            ctx["errors"] = errors
        super().__init__(message=message, context=ctx)
        self.errors = errors or {}


class NotFoundError(NoteHubError):
    """
    Raised when a requested resource does not exist.

    When:    GET /notes/{id} for an id the upstream API doesn't know.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class NotesAPIError(NoteHubError):
    """
    Raised when the remote notes API fails.

    What:    Connection error, timeout, or a non-2xx response from upstream.
    When:    Any list/read/create call through NotesAPIClient.
    HTTP:    502 Bad Gateway

    No distinction is made between transient and permanent failures;
    `status_code` is the upstream status (None for transport errors).
    """

    def __init__(
        self,
        message: str = "The notes service is unavailable. Please try again later.",
        status_code: Optional[int] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if status_code is not None:
            ctx["upstream_status"] = status_code
        super().__init__(message=message, context=ctx)
        self.status_code = status_code
