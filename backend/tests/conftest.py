"""
ReadNote Server — Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Provides reusable test infrastructure (in-memory Redis, API clients,
       a throwaway static root).
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── fake_redis: In-memory stand-in for a redis.asyncio client
    ├── store: StoreClient wrapping fake_redis (READY)
    ├── static_root: Temporary directory with a tiny reader app
    ├── static_files: StaticFileService over static_root
    ├── test_client: HTTPX AsyncClient for an app with a working store
    └── offline_client: HTTPX AsyncClient for an app with no store configured
"""

import fnmatch
import os
import tempfile
from typing import Dict, List, Optional

# Override settings for testing BEFORE any readnote imports
# Why: settings is built when readnote.config is first imported
os.environ["REDIS_URL"] = ""
os.environ["STORE_RETRY_WAIT"] = "0"  # Retries without sleeping
os.environ["STATIC_ROOT"] = tempfile.mkdtemp(prefix="readnote_test_")
os.environ["LOG_LEVEL"] = "WARNING"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from readnote.services.static_service import StaticFileService  # noqa: E402
from readnote.store import StoreClient  # noqa: E402

ENTRY_HTML = b"<!doctype html><html><body>ReadNote</body></html>"


# ══════════════════════════════════════════════════════════════════════════
# In-Memory Redis
# ══════════════════════════════════════════════════════════════════════════

class FakeRedis:
    """
    The subset of redis.asyncio.Redis that StoreClient calls, backed by a dict.

    fail_next(exc, times) makes the next `times` commands raise `exc`,
    to exercise retry and error mapping.
    """

    def __init__(self):
        self.data: Dict[str, str] = {}
        self.commands: List[str] = []
        self.closed = False
        self._failure: Optional[Exception] = None
        self._failures_left = 0

    def fail_next(self, exc: Exception, times: int = 1) -> None:
        self._failure = exc
        self._failures_left = times

    def _record(self, command: str) -> None:
        self.commands.append(command)
        if self._failures_left > 0:
            self._failures_left -= 1
            raise self._failure

    async def get(self, key: str) -> Optional[str]:
        self._record("get")
        return self.data.get(key)

    async def set(self, key: str, value: str) -> bool:
        self._record("set")
        self.data[key] = value
        return True

    async def delete(self, *keys: str) -> int:
        self._record("delete")
        return sum(1 for key in keys if self.data.pop(key, None) is not None)

    async def keys(self, pattern: str) -> List[str]:
        self._record("keys")
        return [key for key in self.data if fnmatch.fnmatchcase(key, pattern)]

    async def ping(self) -> bool:
        self._record("ping")
        return True

    async def aclose(self) -> None:
        self.closed = True


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def store(fake_redis):
    """A READY StoreClient over the in-memory Redis."""
    return StoreClient(client=fake_redis)


@pytest.fixture
def static_root(tmp_path):
    """
    A minimal reader app:
        index.html, app.js, style.css, logo.png, data.bin, assets/
    """
    root = tmp_path / "public"
    root.mkdir()
    (root / "index.html").write_bytes(ENTRY_HTML)
    (root / "app.js").write_text("console.log('reader');")
    (root / "style.css").write_text("body { margin: 0; }")
    (root / "logo.png").write_bytes(b"\x89PNG\r\n\x1a\n")
    (root / "data.bin").write_bytes(b"\x00\x01\x02")
    (root / "assets").mkdir()
    return root


@pytest.fixture
def static_files(static_root):
    return StaticFileService(root=str(static_root), entry_document="index.html")


@pytest_asyncio.fixture
async def test_client(store, static_files):
    """
    HTTPX AsyncClient talking to an app whose store is up.

    Usage:
        async def test_status(test_client):
            response = await test_client.get("/api/status")
            assert response.status_code == 200
    """
    from readnote.main import create_app

    app = create_app(store=store, static_files=static_files)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def offline_client(static_files):
    """HTTPX AsyncClient talking to an app started without REDIS_URL."""
    from readnote.main import create_app

    app = create_app(store=StoreClient(), static_files=static_files)
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def entry_html():
    """Bytes of the static_root entry document."""
    return ENTRY_HTML
