"""
ReadNote Server — Progress & Notes Route Handlers
===================================================

What:  GET/POST for the global reading-progress and notes records.
How:   POST replaces the whole record; GET returns {} until the first write.
"""

from fastapi import APIRouter, Depends, Request

from readnote.request_body import read_json_body
from readnote.schemas.library import (
    ErrorResponse,
    NotesResponse,
    ProgressResponse,
    SuccessResponse,
)
from readnote.services.user_state_service import user_state_service
from readnote.store import StoreClient, require_store

router = APIRouter(tags=["Progress & Notes"])

_ERRORS = {
    500: {"description": "Malformed JSON body or store error", "model": ErrorResponse},
    503: {"description": "Store unavailable", "model": ErrorResponse},
}


@router.get("/progress", response_model=ProgressResponse, responses=_ERRORS,
            summary="Get reading progress")
async def get_progress(store: StoreClient = Depends(require_store)) -> ProgressResponse:
    return await user_state_service.get_progress(store)


@router.post("/progress", response_model=SuccessResponse, responses=_ERRORS,
             summary="Replace reading progress")
async def save_progress(
    request: Request,
    store: StoreClient = Depends(require_store),
) -> SuccessResponse:
    body = await read_json_body(request)
    return await user_state_service.save_progress(store, body)


@router.get("/notes", response_model=NotesResponse, responses=_ERRORS,
            summary="Get all notes")
async def get_notes(store: StoreClient = Depends(require_store)) -> NotesResponse:
    return await user_state_service.get_notes(store)


@router.post("/notes", response_model=SuccessResponse, responses=_ERRORS,
             summary="Replace all notes")
async def save_notes(
    request: Request,
    store: StoreClient = Depends(require_store),
) -> SuccessResponse:
    body = await read_json_body(request)
    return await user_state_service.save_notes(store, body)
