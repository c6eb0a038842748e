"""
ReadNote Server — Book Route Handlers
=======================================

What:  CRUD endpoints for stored books under /api/books.
Why:   The reader keeps its library in the cloud store so it survives a
       cleared browser cache and follows the user across devices.
How:   Extracts path params and the raw body, delegates to BookService.

Listing returns metadata only; the (potentially multi-megabyte) payload is
fetched per book with GET /api/books/{id}.
"""

import logging

from fastapi import APIRouter, Depends, Request

from readnote.request_body import read_json_body
from readnote.schemas.library import (
    BookContent,
    BookDetail,
    BookListResponse,
    ErrorResponse,
    SaveBookResponse,
    SuccessResponse,
)
from readnote.services.book_service import book_service
from readnote.store import StoreClient, require_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Books"])


@router.get(
    "/books",
    response_model=BookListResponse,
    response_model_exclude_unset=True,
    responses={503: {"description": "Store unavailable", "model": ErrorResponse}},
    summary="List metadata of every stored book",
)
async def list_books(store: StoreClient = Depends(require_store)) -> BookListResponse:
    return await book_service.list_books(store)


@router.post(
    "/books",
    response_model=SaveBookResponse,
    responses={
        400: {"description": "Missing id or name", "model": ErrorResponse},
        500: {"description": "Malformed JSON body", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Save (create or replace) a book",
    description=(
        "Requires `id` and `name`. Stores the metadata with a server timestamp, "
        "plus `rawData` (base64) and `content`/`chapters` when provided."
    ),
)
async def save_book(
    request: Request,
    store: StoreClient = Depends(require_store),
) -> SaveBookResponse:
    body = await read_json_body(request)
    return await book_service.save_book(store, body)


@router.get(
    "/books/{book_id}",
    response_model=BookDetail,
    response_model_exclude_unset=True,
    responses={
        404: {"description": "Book not found", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Get a book's metadata and payload",
)
async def get_book(
    book_id: str,
    store: StoreClient = Depends(require_store),
) -> BookDetail:
    return await book_service.get_book(store, book_id)


@router.get(
    "/books/{book_id}/content",
    response_model=BookContent,
    responses={
        404: {"description": "No content cached for this book", "model": ErrorResponse},
        503: {"description": "Store unavailable", "model": ErrorResponse},
    },
    summary="Get a book's cached content and chapters",
)
async def get_book_content(
    book_id: str,
    store: StoreClient = Depends(require_store),
) -> BookContent:
    return await book_service.get_book_content(store, book_id)


@router.delete(
    "/books/{book_id}",
    response_model=SuccessResponse,
    responses={503: {"description": "Store unavailable", "model": ErrorResponse}},
    summary="Delete a book and everything stored with it",
    description="Idempotent: deleting an unknown id also answers success.",
)
async def delete_book(
    book_id: str,
    store: StoreClient = Depends(require_store),
) -> SuccessResponse:
    return await book_service.delete_book(store, book_id)
