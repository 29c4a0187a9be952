"""
NoteHub Web — Application Package
===================================

What:  Server-rendered front end for a remote notes API.

Architecture:

    ┌─────────────────────────────────────┐
    │        Routes (pages + JSON)        │  ← HTTP concerns, templates
    ├─────────────────────────────────────┤
    │  Services (prefetch, form, cache)   │  ← validation, cache rules
    ├─────────────────────────────────────┤
    │      Schemas (pydantic models)      │  ← upstream contract
    ├─────────────────────────────────────┤
    │    NotesAPIClient (httpx, remote)   │  ← persistence lives upstream
    └─────────────────────────────────────┘
"""

__version__ = "1.0.0"
