"""
NoteHub Web — Middleware Package
==================================

Middleware Chain (order matters):
    Request → [Request ID] → [Logging] → [GZip] → [CORS] → Route Handler

    - Request ID runs first so every log line of the request carries it
    - Logging captures response status and duration on the way out
"""
