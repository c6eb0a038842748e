"""
ReadNote Server — Pydantic Request/Response Schemas
=====================================================

What:  Pydantic models defining the API contract with the browser reader.
Why:   The reader sends loosely-shaped JSON; declaring every optional field
       here makes the accepted shape explicit and lets services check
       presence instead of trusting it.
How:   Request bodies are validated by the services (not by FastAPI) so that
       missing fields become 400s and malformed JSON a 500, matching what
       the reader expects. Responses are serialized by FastAPI.

Wire format uses camelCase (`savedAt`, `rawData`); Python code uses
snake_case through field aliases.
"""

from typing import Any, List, Optional

from pydantic import BaseModel, Field

# Book ids and names are chosen by the client. Only their presence is
# checked; any JSON value is stored and echoed back unchanged.
BookId = Any


# ══════════════════════════════════════════════════════════════════════════
# Request Models — What the reader sends
# ══════════════════════════════════════════════════════════════════════════


class BookSaveRequest(BaseModel):
    """
    Body of POST /api/books.

    Every field is optional at the schema level; BookService enforces that
    `id` and `name` are present and non-empty.
    """
    id: BookId = None
    name: Any = None
    type: Any = None
    size: Any = None
    metadata: Any = None
    raw_data: Any = Field(
        default=None,
        alias="rawData",
        description="Original file bytes, base64 encoded; stored only when a non-empty string",
    )
    content: Any = None
    chapters: Any = None

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ProgressPayload(BaseModel):
    """Body of POST /api/progress. A missing `progress` stores an empty record."""
    progress: Any = None

    model_config = {"extra": "ignore"}


class NotesPayload(BaseModel):
    """Body of POST /api/notes. A missing `notes` stores an empty record."""
    notes: Any = None

    model_config = {"extra": "ignore"}


# ══════════════════════════════════════════════════════════════════════════
# Stored / Response Models — What the API returns
# ══════════════════════════════════════════════════════════════════════════


class BookMeta(BaseModel):
    """
    Metadata record stored under `book:<id>:meta`.

    Kept small on purpose: GET /api/books reads only these records, never
    the payload. Unknown fields written by other clients are preserved.
    """
    id: BookId
    name: Any
    type: Any = None
    size: Any = None
    metadata: Any = None
    saved_at: Optional[str] = Field(
        default=None,
        alias="savedAt",
        description="Server timestamp of the last save (ISO 8601, UTC)",
    )

    model_config = {"populate_by_name": True, "extra": "allow"}


class BookDetail(BookMeta):
    """Response of GET /api/books/{id}: metadata plus the raw payload."""
    raw_data: Optional[str] = Field(
        default=None,
        alias="rawData",
        description="Base64 payload, or null if none was saved",
    )


class BookContent(BaseModel):
    """Extracted text cache stored under `book:<id>:content`."""
    content: Any = None
    chapters: Any = None


class BookListResponse(BaseModel):
    books: List[BookMeta] = Field(description="Metadata of every stored book, unordered")


class SaveBookResponse(BaseModel):
    success: bool = True
    id: BookId


class SuccessResponse(BaseModel):
    success: bool = True


class ProgressResponse(BaseModel):
    progress: Any = Field(default_factory=dict)


class NotesResponse(BaseModel):
    notes: Any = Field(default_factory=dict)


class StatusResponse(BaseModel):
    redis: str = Field(description="'connected' if the store answered PING, else 'error'")


# ══════════════════════════════════════════════════════════════════════════
# Error Response Model — Consistent error format across all endpoints
# ══════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    """
    Standardized error response format for all API errors.

    Example:
        {
            "error": "storage_unavailable",
            "message": "Cloud storage not available",
            "request_id": "1f3a9c2e"
        }
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")
