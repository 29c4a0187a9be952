"""
NoteHub Web — Routes Package
==============================

What:  HTTP route handlers for pages and JSON endpoints.

Route Inventory:
    - notes.py:   GET  /                        (redirect to all notes)
                  GET  /notes/filter/{slug}     (list filtered by tag, prefetched)
                  GET  /notes/{id}              (note detail, prefetched)
                  GET  /api/notes               (JSON list through the query cache)
    - create.py:  GET  /notes/action/create     (empty note form)
                  POST /notes/action/create     (validate + create, or cancel)
    - health.py:  GET  /health                  (service health check)

Routes stay thin: they extract request data, call a service, and pick the
status code and template. Validation and cache rules live in services.
"""
