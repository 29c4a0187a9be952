"""
NoteHub Web — FastAPI Application Factory
===========================================

What:  Creates and configures the FastAPI application instance.
How:   Factory pattern: create_app() returns a configured FastAPI instance.
Who:   Called by uvicorn to start the server (uvicorn notehub.main:app).

Application Architecture:
    ┌──────────────────────────────────────────────────────────┐
    │                      FastAPI App                         │
    │                                                          │
    │  Middleware:  Request ID → Logging → GZip → CORS         │
    │                                                          │
    │  Routes:                                                 │
    │   GET /notes/filter/{slug}   GET /notes/{id}             │
    │   GET|POST /notes/action/create  GET|POST /api/notes     │
    │   GET /health                                            │
    │                                                          │
    │  app.state:  notes_api (NotesAPIClient)                  │
    │              query_cache (QueryCache)                    │
    │                                                          │
    │  Exception Handlers:                                     │
    │   ValidationError→400 │ NotFound→404 │ NotesAPI→502      │
    └──────────────────────────────────────────────────────────┘

Lifecycle:
    Startup:  logging → config validation → httpx client + query cache
    Shutdown: close the httpx client
"""

import logging
import sys
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from notehub import __version__
from notehub.config import settings
from notehub.deps import templates
from notehub.exceptions import (
    NoteHubError,
    NotesAPIError,
    NotFoundError,
    ValidationError,
)
from notehub.middleware.logging import RequestLoggingMiddleware
from notehub.middleware.request_id import RequestIDMiddleware, request_id_var
from notehub.routes import create, health, notes
from notehub.services.notes_api import NotesAPIClient, build_http_client
from notehub.services.query_cache import QueryCache

logger = logging.getLogger(__name__)


# ══════════════════════════════════════════════════════════════════════════
# Logging Configuration
# ══════════════════════════════════════════════════════════════════════════

def setup_logging() -> None:
    """
    Configure logging for the entire application.

    When:    Called once during app startup, before anything else logs.
    Format:  %(asctime)s [%(levelname)s] %(name)s: %(message)s
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
        handlers=[logging.StreamHandler(sys.stdout)],
        force=True,
    )

    # Third-party libraries that log every request at INFO
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


# ══════════════════════════════════════════════════════════════════════════
# Application Lifespan (Startup & Shutdown)
# ══════════════════════════════════════════════════════════════════════════

@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Create the shared upstream client and query cache; close the client
    on shutdown.
    """
    setup_logging()
    logger.info("=" * 60)
    logger.info("NoteHub Web %s starting up...", __version__)

    try:
        settings.validate_required_for_production()
    except ValueError as e:
        logger.error("Configuration error: %s", str(e))
        raise

    http_client = build_http_client(settings)
    app.state.notes_api = NotesAPIClient(http_client, per_page=settings.notes_per_page)
    app.state.query_cache = QueryCache(
        stale_time=settings.query_stale_seconds,
        gc_time=settings.query_gc_seconds,
        max_entries=settings.query_max_entries,
    )

    logger.info("Notes API: %s", settings.notes_api_url)
    logger.info("Server ready at http://%s:%d", settings.web_host, settings.web_port)
    logger.info("=" * 60)

    yield

    logger.info("NoteHub Web shutting down...")
    await http_client.aclose()
    logger.info("Shutdown complete.")


# ══════════════════════════════════════════════════════════════════════════
# Exception Handlers
# ══════════════════════════════════════════════════════════════════════════

def _wants_json(request: Request) -> bool:
    return request.url.path.startswith("/api/") or request.url.path == "/health"


def _error_response(
    request: Request,
    status_code: int,
    error: str,
    message: str,
    details: dict = None,
    headers: dict = None,
):
    """JSON body for API paths, the rendered error page for everything else."""
    rid = request_id_var.get("")
    if _wants_json(request):
        content = {"error": error, "message": message, "request_id": rid}
        if details:
            content["details"] = details
        return JSONResponse(status_code=status_code, content=content, headers=headers)

    return templates.TemplateResponse(
        request,
        "error.html",
        {"status_code": status_code, "message": message, "request_id": rid},
        status_code=status_code,
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """
    Map application exceptions to HTTP responses.

    Handler hierarchy:
        ValidationError      → 400 Bad Request
        NotFoundError        → 404 Not Found
        NotesAPIError        → 502 Bad Gateway
        NoteHubError (base)  → 500 Internal Server Error
        Exception (fallback) → 500 Internal Server Error

    Responses never include upstream payloads or stack traces; those are
    logged server-side with the request ID.
    """

    @app.exception_handler(ValidationError)
    async def handle_validation_error(request: Request, exc: ValidationError):
        logger.warning("[%s] Validation error: %s", request_id_var.get(""), exc.message)
        return _error_response(
            request, 400, "validation_error", exc.message, details={"errors": exc.errors}
        )

    @app.exception_handler(NotFoundError)
    async def handle_not_found(request: Request, exc: NotFoundError):
        return _error_response(request, 404, "not_found", exc.message)

    @app.exception_handler(NotesAPIError)
    async def handle_notes_api_error(request: Request, exc: NotesAPIError):
        logger.error(
            "[%s] Notes API error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        details = {"upstream_status": exc.status_code} if exc.status_code else None
        return _error_response(request, 502, "upstream_error", exc.message, details=details)

    @app.exception_handler(NoteHubError)
    async def handle_app_error(request: Request, exc: NoteHubError):
        logger.error(
            "[%s] Application error: %s | Context: %s",
            request_id_var.get(""),
            exc.message,
            exc.context,
        )
        return _error_response(request, 500, "server_error", exc.message)

    @app.exception_handler(Exception)
    async def handle_unexpected_error(request: Request, exc: Exception):
        logger.error(
            "[%s] Unexpected error: %s",
            request_id_var.get(""),
            str(exc),
            exc_info=True,
        )
        return _error_response(
            request,
            500,
            "internal_server_error",
            "An unexpected error occurred. Please try again.",
        )


# ══════════════════════════════════════════════════════════════════════════
# Application Factory
# ══════════════════════════════════════════════════════════════════════════

def create_app() -> FastAPI:
    """
    Create and configure the FastAPI application.

    Returns: Fully configured FastAPI instance ready to receive requests.
    """
    app = FastAPI(
        title="NoteHub Web",
        description=(
            "Server-rendered notes front end: tag-filtered lists prefetched on the "
            "server, and a validated form for creating notes through the notes API."
        ),
        version=__version__,
        docs_url="/docs",
        redoc_url=None,
        lifespan=lifespan,
    )

    # Middleware executes in REVERSE order of addition:
    # RequestID → Logging → GZip → CORS → route
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Total-Pages"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    app.include_router(notes.router)
    app.include_router(create.router)
    app.include_router(create.api_router)
    app.include_router(health.router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("notehub.main:app", host=settings.web_host, port=settings.web_port)
