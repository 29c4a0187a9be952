"""
NoteHub Web — Services Layer
==============================

What:  Everything between the route handlers and the remote notes API.

Service Inventory:
    - NotesAPIClient: typed httpx client for list / read / create
    - QueryCache: keyed query results with invalidation and hydration
    - prefetch: tag resolution, server-side prefetch, cache-backed loaders
    - NoteForm: note form validation and submit/cancel workflow
    - notifications: toast queue and flash cookie helpers
"""
