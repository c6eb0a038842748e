# Routes package init
"""
ReadNote Server — Routes Package
==================================

Route Inventory:
    - api.py:         /api prefix, store guard, 404 for unknown /api paths
    - books.py:       GET/POST   /api/books
                      GET/DELETE /api/books/{id}
                      GET        /api/books/{id}/content
    - user_state.py:  GET/POST   /api/progress, /api/notes
    - status.py:      GET        /api/status
    - static.py:      everything else (files + SPA fallback)

Handlers stay thin: read the path and body, call a service, return its model.
"""
