"""
ReadNote Server — Static File Route
=====================================

What:  Catch-all for every non-API path: serves the reader's files.
How:   Delegates to the StaticFileService on app.state. Registered after
       the API router so /api/... never reaches it.
"""

from fastapi import APIRouter, Request
from starlette.responses import Response

from readnote.routes.api import ALL_METHODS

router = APIRouter(tags=["Static"])


@router.api_route("/{file_path:path}", methods=ALL_METHODS, include_in_schema=False)
async def serve_static(file_path: str, request: Request) -> Response:
    return await request.app.state.static_files.serve(file_path)
