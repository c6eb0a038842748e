# Middleware package init
"""
ReadNote Server — Middleware Package
======================================

What:  Cross-cutting concerns applied to every request.

Middleware Chain (outermost first):
    Request → [CORS] → [Request ID] → [Logging] → [GZip] → Router

    Why this order:
    1. CORS FIRST: OPTIONS is answered before anything else runs, and the
       allow-origin header lands on every response, errors included
    2. Request ID: correlation ID available to logging and error handlers
    3. Logging: measures the time spent below it
    4. GZip: compresses large JSON (book payloads) and static assets
"""
