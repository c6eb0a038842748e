"""
ReadNote Server — API Router Assembly
=======================================

What:  Mounts every API router under /api behind the store guard.
Why:   The availability check must run for every /api path, including
       unknown ones, so it sits on the parent router rather than on each
       handler. Unknown /api paths answer 404 only when the store is up.
"""

from fastapi import APIRouter, Depends

from readnote.exceptions import NotFoundError
from readnote.routes import books, status, user_state
from readnote.store import require_store

# Every method except OPTIONS, which the CORS middleware answers first
ALL_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"]

router = APIRouter(prefix="/api", dependencies=[Depends(require_store)])
router.include_router(books.router)
router.include_router(user_state.router)
router.include_router(status.router)


# Registered last: Starlette prefers a full match on a later route over a
# path match with the wrong method, so this also catches e.g. PUT /api/books.
@router.api_route("/{path:path}", methods=ALL_METHODS, include_in_schema=False)
async def api_not_found(path: str) -> None:
    raise NotFoundError(resource="endpoint", resource_id=f"/api/{path}")
