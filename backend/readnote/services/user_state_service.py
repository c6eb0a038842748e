"""
ReadNote Server — Reading Progress & Notes Service
====================================================

What:  Reads and replaces the two global user records.
Why:   ReadNote is single-tenant: one progress record (document id →
       position) and one notes record hold everything, each under a single
       well-known key. Nothing is cached in the process.

Keys:
    user:progress   JSON, any shape the reader chooses
    user:notes      JSON, any shape the reader chooses

Both records are replaced wholesale on every write and never deleted.
"""

import json
import logging
from typing import Any

from readnote.exceptions import StorageError
from readnote.request_body import validate_body
from readnote.schemas.library import (
    NotesPayload,
    NotesResponse,
    ProgressPayload,
    ProgressResponse,
    SuccessResponse,
)
from readnote.store import StoreClient

logger = logging.getLogger(__name__)

PROGRESS_KEY = "user:progress"
NOTES_KEY = "user:notes"


def _as_object(body: Any) -> dict:
    """A body that is not a JSON object carries no fields."""
    return body if isinstance(body, dict) else {}


def _is_blank(value: Any) -> bool:
    """
    null, false, 0 and "" are stored as an empty record. Empty lists and
    objects are real values and kept.
    """
    if value is None or isinstance(value, (list, dict)):
        return value is None
    return not value


class UserStateService:

    async def get_progress(self, store: StoreClient) -> ProgressResponse:
        return ProgressResponse(progress=await self._read_record(store, PROGRESS_KEY))

    async def save_progress(self, store: StoreClient, body: Any) -> SuccessResponse:
        payload = validate_body(ProgressPayload, _as_object(body))
        await self._write_record(store, PROGRESS_KEY, payload.progress)
        return SuccessResponse()

    async def get_notes(self, store: StoreClient) -> NotesResponse:
        return NotesResponse(notes=await self._read_record(store, NOTES_KEY))

    async def save_notes(self, store: StoreClient, body: Any) -> SuccessResponse:
        payload = validate_body(NotesPayload, _as_object(body))
        await self._write_record(store, NOTES_KEY, payload.notes)
        return SuccessResponse()

    @staticmethod
    async def _read_record(store: StoreClient, key: str) -> Any:
        """The decoded record, or {} if it was never written."""
        raw = await store.get(key)
        if raw is None:
            return {}
        try:
            return json.loads(raw)
        except ValueError:
            raise StorageError(
                message=f"Stored value at '{key}' is not valid JSON",
                context={"key": key},
            )

    @staticmethod
    async def _write_record(store: StoreClient, key: str, value: Any) -> None:
        if _is_blank(value):
            value = {}
        encoded = json.dumps(value)
        await store.set(key, encoded)
        logger.info("Replaced %s (%d bytes)", key, len(encoded))


# ── Singleton Instance ────────────────────────────────────────────────────
user_state_service = UserStateService()
