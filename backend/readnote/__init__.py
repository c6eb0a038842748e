"""
ReadNote Server — Application Package Initializer
==================================================

What: Marks the `readnote` directory as a Python package.
Why:  Enables module imports like `from readnote.config import settings`.
Who:  Used implicitly by Python's import system and explicitly by pytest and uvicorn.

Architecture Note:
    The backend is a thin persistence layer for the ReadNote browser reader:

    ┌─────────────────────────────────────┐
    │    Routes (API + static fallback)   │  ← HTTP concerns only
    ├─────────────────────────────────────┤
    │         Services (Business Logic)   │  ← Key layout, presence checks
    ├─────────────────────────────────────┤
    │          Schemas (Data)             │  ← Pydantic request/response models
    ├─────────────────────────────────────┤
    │        Store (Persistence)          │  ← Redis client with degraded mode
    └─────────────────────────────────────┘

    The process keeps no authoritative state of its own: every read and
    write round-trips to Redis.
"""

__version__ = "1.0.0"
