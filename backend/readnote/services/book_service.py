"""
ReadNote Server — Book Service
================================

What:  Save, fetch, list, and delete books in the key-value store.
Why:   Keeps the key layout and presence rules out of the route handlers.
How:   Each book lives under three keys sharing the `book:<id>:` prefix:

           book:<id>:meta      JSON BookMeta (small; read by listings)
           book:<id>:data      base64 payload, stored verbatim (optional)
           book:<id>:content   JSON {content, chapters} (optional)

       The keys are written in sequence and removed with one DEL. There is
       no transaction: a concurrent reader may see meta without data while
       a save is in flight, and that state is also valid at rest.

Design Decision:
    BookService is stateless; it receives the StoreClient on every call,
    just as the route handlers receive it from the `require_store`
    dependency. Tests pass a client wrapping an in-memory Redis double.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from readnote.exceptions import NotFoundError, StorageError, ValidationError
from readnote.request_body import validate_body
from readnote.schemas.library import (
    BookContent,
    BookDetail,
    BookListResponse,
    BookMeta,
    BookSaveRequest,
    SaveBookResponse,
    SuccessResponse,
)
from readnote.store import StoreClient

logger = logging.getLogger(__name__)

BOOK_META_PATTERN = "book:*:meta"


def book_meta_key(book_id: Any) -> str:
    return f"book:{book_id}:meta"


def book_data_key(book_id: Any) -> str:
    return f"book:{book_id}:data"


def book_content_key(book_id: Any) -> str:
    return f"book:{book_id}:content"


def utc_timestamp() -> str:
    """Current UTC time as ISO 8601 with milliseconds and a trailing Z."""
    return (
        datetime.now(timezone.utc)
        .isoformat(timespec="milliseconds")
        .replace("+00:00", "Z")
    )


class BookService:
    """
    Business logic for book records.

    Responsibilities:
        - list_books(): metadata of every book (never touches payloads)
        - get_book(): metadata merged with the payload
        - get_book_content(): cached extracted text
        - save_book(): presence check, timestamp, upsert of up to three keys
        - delete_book(): idempotent removal of all three keys
    """

    async def list_books(self, store: StoreClient) -> BookListResponse:
        keys = await store.list_keys(BOOK_META_PATTERN)
        books = []
        for key in keys:
            raw = await store.get(key)
            if raw is None:
                # Deleted between KEYS and GET
                continue
            books.append(self._decode_meta(raw, key))

        logger.debug("Listed %d books", len(books))
        return BookListResponse(books=books)

    async def get_book(self, store: StoreClient, book_id: str) -> BookDetail:
        """
        Raises:
            NotFoundError: no meta record for this id (→ 404)
        """
        meta_key = book_meta_key(book_id)
        raw_meta = await store.get(meta_key)
        if raw_meta is None:
            raise NotFoundError(resource="book", resource_id=book_id)

        raw_data = await store.get(book_data_key(book_id))
        meta = self._decode_meta(raw_meta, meta_key)
        return BookDetail.model_validate(
            {**meta.model_dump(by_alias=True, exclude_unset=True), "rawData": raw_data}
        )

    async def get_book_content(self, store: StoreClient, book_id: str) -> BookContent:
        content_key = book_content_key(book_id)
        raw = await store.get(content_key)
        if raw is None:
            raise NotFoundError(resource="book content", resource_id=book_id)
        try:
            return BookContent.model_validate_json(raw)
        except PydanticValidationError as e:
            raise StorageError(
                message=f"Stored value at '{content_key}' is not valid book content",
                context={"key": content_key, "errors": e.error_count()},
            )

    async def save_book(self, store: StoreClient, body: Any) -> SaveBookResponse:
        """
        Upsert a book from a decoded request body.

        Last write wins on an existing id. The payload and content keys are
        written only when the request carries them, so re-saving metadata
        alone keeps an earlier payload.

        Raises:
            ValidationError: `id` or `name` missing or empty (→ 400)
        """
        request = validate_body(BookSaveRequest, body)

        missing = [field for field in ("id", "name") if not getattr(request, field)]
        if missing:
            raise ValidationError(
                message="Missing required fields",
                field=missing[0],
                context={"missing": missing},
            )

        meta = BookMeta(
            id=request.id,
            name=request.name,
            type=request.type,
            size=request.size,
            metadata=request.metadata,
            saved_at=utc_timestamp(),
        )
        await store.set(
            book_meta_key(request.id),
            meta.model_dump_json(by_alias=True, exclude_none=True),
        )

        has_payload = isinstance(request.raw_data, str) and bool(request.raw_data)
        if has_payload:
            await store.set(book_data_key(request.id), request.raw_data)
        elif request.raw_data:
            logger.warning(
                "Ignoring non-string rawData for book %s (%s)",
                request.id,
                type(request.raw_data).__name__,
            )

        if request.content is not None or request.chapters is not None:
            content = BookContent(content=request.content, chapters=request.chapters)
            await store.set(book_content_key(request.id), content.model_dump_json())

        logger.info(
            "Saved book %s (%s, payload=%s)",
            request.id,
            request.name,
            "yes" if has_payload else "no",
        )
        return SaveBookResponse(id=request.id)

    async def delete_book(self, store: StoreClient, book_id: str) -> SuccessResponse:
        removed = await store.delete(
            book_meta_key(book_id),
            book_data_key(book_id),
            book_content_key(book_id),
        )
        logger.info("Deleted book %s (%d keys removed)", book_id, removed)
        return SuccessResponse()

    @staticmethod
    def _decode_meta(raw: str, key: str) -> BookMeta:
        try:
            return BookMeta.model_validate_json(raw)
        except PydanticValidationError as e:
            raise StorageError(
                message=f"Stored value at '{key}' is not valid book metadata",
                context={"key": key, "errors": e.error_count()},
            )


# ── Singleton Instance ────────────────────────────────────────────────────
book_service = BookService()
