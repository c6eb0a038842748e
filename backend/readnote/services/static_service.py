"""
ReadNote Server — Static File Service
=======================================

What:  Serves the browser application from a directory, with SPA fallback.
Why:   The reader is a single-page app: routes like /library/42 exist only
       client-side, so any path that does not name a file must render the
       app shell (the entry document) instead of a 404.
How:   Resolve the URL path under the static root, read it asynchronously,
       and label it by extension. Missing files fall back to the entry
       document; only an unreadable entry document is a hard 500.

Security Model:
    The resolved path must stay inside the static root. A path that
    escapes it (../../etc/passwd) is treated like any other missing file and
    renders the app shell.
"""

import logging
from pathlib import Path
from typing import Optional

import aiofiles
from starlette.responses import PlainTextResponse, Response

from readnote.config import settings

logger = logging.getLogger(__name__)

# ── Content Types ─────────────────────────────────────────────────────────
# Only the types the reader ships; everything else is sent as opaque bytes
CONTENT_TYPES = {
    ".html": "text/html",
    ".css": "text/css",
    ".js": "application/javascript",
    ".json": "application/json",
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".gif": "image/gif",
    ".svg": "image/svg+xml",
    ".ico": "image/x-icon",
}
DEFAULT_CONTENT_TYPE = "application/octet-stream"


def content_type_for(path: Path) -> str:
    """Content type from the file extension, case-insensitive."""
    return CONTENT_TYPES.get(path.suffix.lower(), DEFAULT_CONTENT_TYPE)


class StaticFileService:
    """
    Reads files from `root` and builds responses for them.

    Args:
        root: Directory holding the app; defaults to settings.static_root.
        entry_document: App shell, relative to root; defaults to settings.entry_document.
    """

    def __init__(self, root: Optional[str] = None, entry_document: Optional[str] = None):
        self.root = Path(root or settings.static_root).resolve()
        self.entry_document = entry_document or settings.entry_document
        logger.info(
            "StaticFileService initialized with root=%s entry=%s",
            self.root,
            self.entry_document,
        )

    def resolve(self, url_path: str) -> Optional[Path]:
        """
        Map a decoded URL path to a file under root.

        Returns None when the path escapes root or cannot name a file at all
        (e.g. an embedded NUL). "/" and "" map to the entry document.
        """
        relative = url_path.lstrip("/") or self.entry_document
        try:
            candidate = (self.root / relative).resolve()
        except (ValueError, OSError) as e:
            logger.warning("Rejected unresolvable static path %r: %s", url_path, e)
            return None
        if candidate != self.root and self.root not in candidate.parents:
            logger.warning("Rejected path outside static root: %s", url_path)
            return None
        return candidate

    async def serve(self, url_path: str) -> Response:
        path = self.resolve(url_path)
        if path is None:
            return await self.serve_entry_document()

        try:
            content = await self._read(path)
        except (FileNotFoundError, NotADirectoryError):
            return await self.serve_entry_document()
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            return PlainTextResponse("Server Error", status_code=500)

        return Response(content=content, media_type=content_type_for(path))

    async def serve_entry_document(self) -> Response:
        """The app shell as text/html, or 500 if it cannot be read."""
        entry = self.root / self.entry_document
        try:
            content = await self._read(entry)
        except OSError as e:
            logger.error("Entry document %s unreadable: %s", entry, e)
            return PlainTextResponse("Server Error", status_code=500)
        return Response(content=content, media_type="text/html")

    @staticmethod
    async def _read(path: Path) -> bytes:
        async with aiofiles.open(path, "rb") as f:
            return await f.read()
