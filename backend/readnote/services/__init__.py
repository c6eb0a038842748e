# Services package init
"""
ReadNote Server — Services Layer
==================================

What:  Business logic between the routes (HTTP) and the store (Redis).
How:   Services are stateless singletons; the StoreClient is passed to every
       call, so tests can hand them a client over an in-memory Redis.

Service Inventory:
    - BookService: book metadata, payload, and content keys
    - UserStateService: the global progress and notes records
    - StaticFileService: files under the static root, with SPA fallback
"""
