"""
ReadNote Server — Custom Exception Hierarchy
==============================================

What:  Application-specific exceptions for each error scenario of the API.
Why:   Services raise meaningful exceptions; global handlers in main.py turn
       them into JSON responses with the right status code, so route
       handlers never need their own try/except.
How:   Each exception class carries a message and optional context dict.

Exception Hierarchy:
    ReadNoteError (base)
    ├── ValidationError           → 400 Bad Request (missing required fields)
    ├── NotFoundError             → 404 Not Found
    ├── RequestBodyError          → 500 (request body is not valid JSON)
    ├── StorageError              → 500 (store rejected a command)
    └── StorageUnavailableError   → 503 (store unconfigured, down, or unreachable)
"""

from typing import Any, Dict, Optional


class ReadNoteError(Exception):
    """
    Base exception for all ReadNote application errors.

    Attributes:
        message:  User-facing error description
        context:  Additional debug info (logged, returned only for 400s)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(ReadNoteError):
    """
    Raised when a request body lacks fields the operation cannot do without.

    HTTP: 400 Bad Request

    Only presence is checked (e.g. a book needs `id` and `name`); the shape of
    optional fields is the client's business.
    """

    def __init__(
        self,
        message: str = "Validation failed",
        field: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if field:
            ctx["field"] = field
        super().__init__(message=message, context=ctx)
        self.field = field


class NotFoundError(ReadNoteError):
    """
    Raised when a requested resource does not exist.

    When: GET /api/books/{id} with no meta record, or an unknown /api path.
    HTTP: 404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        resource_id: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        message = f"The requested {resource} was not found"
        if resource_id:
            message = f"{resource} with ID '{resource_id}' was not found"
        ctx = context or {}
        ctx["resource"] = resource
        if resource_id:
            ctx["resource_id"] = resource_id
        super().__init__(message=message, context=ctx)


class RequestBodyError(ReadNoteError):
    """
    Raised when the request body cannot be decoded as JSON.

    HTTP: 500 Internal Server Error

    A malformed body is reported like any other internal failure rather than
    as a 400; browser clients treat both the same way.
    """

    def __init__(
        self,
        message: str = "Request body is not valid JSON",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageError(ReadNoteError):
    """
    Raised when the store answers but the command fails, or a stored value
    cannot be decoded.

    HTTP: 500 Internal Server Error
    """

    def __init__(
        self,
        message: str = "A storage error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class StorageUnavailableError(ReadNoteError):
    """
    Raised when the store cannot be used at all.

    When:
        - REDIS_URL is not configured
        - The startup connection attempt has not finished or has failed
        - A command kept failing at the transport level after all retries
    HTTP: 503 Service Unavailable
    """

    def __init__(
        self,
        message: str = "Cloud storage not available",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
