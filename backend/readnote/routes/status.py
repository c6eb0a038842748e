"""
ReadNote Server — Store Status Route
======================================

What:  GET /api/status, a liveness probe of the Redis connection.
Why:   The reader shows a "cloud sync" indicator and disables sync actions
       when the store is down.

Status levels:
    503                     store unconfigured, still connecting, or failed to connect
    {"redis": "connected"}  PING answered
    {"redis": "error"}      connected earlier but PING failed now, retries included

Unlike the data routes, a PING that keeps failing at the transport level is
not a 503 here: the probe reports it in the body so the reader can tell a
dropped connection (200 "error") from a store that was never there (503).
"""

import logging

from fastapi import APIRouter, Depends

from readnote.schemas.library import ErrorResponse, StatusResponse
from readnote.store import StoreClient, require_store

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Status"])


@router.get(
    "/status",
    response_model=StatusResponse,
    responses={503: {"description": "Store unavailable", "model": ErrorResponse}},
    summary="Store connection status",
)
async def store_status(store: StoreClient = Depends(require_store)) -> StatusResponse:
    alive = await store.ping()
    if not alive:
        logger.warning("Status check: Redis did not answer PING")
    return StatusResponse(redis="connected" if alive else "error")
