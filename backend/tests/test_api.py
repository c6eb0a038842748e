"""
ReadNote Server — API Integration Tests
=========================================

What:  End-to-end tests of the HTTP surface.
How:   HTTPX AsyncClient over ASGITransport (no real server); the store is
       the in-memory Redis from conftest, so responses and stored keys can
       both be checked.

What we test:
    - Book CRUD, status codes, and error bodies
    - Progress and notes round trips
    - /api/status with the store answering and failing
    - 404 for unknown /api paths, 503 for every /api path without a store
    - Cross-origin headers and OPTIONS on any path
    - Request ID propagation
"""

from unittest.mock import patch

import pytest
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from readnote.config import settings

BOOK = {
    "id": "moby",
    "name": "Moby Dick.epub",
    "type": "epub",
    "size": 2048,
    "metadata": {"author": "Herman Melville"},
    "rawData": "UEsDBBQAAAAIAA==",
}


class TestBooksEndpoint:
    """Tests for /api/books."""

    @pytest.mark.asyncio
    async def test_save_and_fetch_book(self, test_client):
        response = await test_client.post("/api/books", json=BOOK)
        assert response.status_code == 200
        assert response.json() == {"success": True, "id": "moby"}

        response = await test_client.get("/api/books/moby")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Moby Dick.epub"
        assert data["metadata"] == {"author": "Herman Melville"}
        assert data["rawData"] == BOOK["rawData"]
        assert data["savedAt"].endswith("Z")

    @pytest.mark.asyncio
    async def test_fetch_without_payload_returns_null(self, test_client):
        await test_client.post("/api/books", json={"id": "bare", "name": "Bare.pdf"})

        data = (await test_client.get("/api/books/bare")).json()
        assert data["rawData"] is None
        assert "type" not in data

    @pytest.mark.asyncio
    async def test_list_returns_metadata_only(self, test_client):
        for i in range(3):
            await test_client.post("/api/books", json={**BOOK, "id": f"b{i}"})

        response = await test_client.get("/api/books")
        assert response.status_code == 200
        books = response.json()["books"]
        assert sorted(b["id"] for b in books) == ["b0", "b1", "b2"]
        assert all("rawData" not in b for b in books)

    @pytest.mark.asyncio
    async def test_list_empty(self, test_client):
        response = await test_client.get("/api/books")
        assert response.json() == {"books": []}

    @pytest.mark.asyncio
    async def test_missing_name_is_400(self, test_client, fake_redis):
        response = await test_client.post("/api/books", json={"id": "x"})
        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["message"] == "Missing required fields"
        assert fake_redis.data == {}

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "body",
        [
            {"id": "x", "name": 123},
            {"id": 1.5, "name": "a"},
            {"id": "x", "name": "a", "rawData": {"b": 1}},
        ],
    )
    async def test_any_present_id_and_name_saved(self, test_client, body):
        response = await test_client.post("/api/books", json=body)
        assert response.status_code == 200
        assert response.json() == {"success": True, "id": body["id"]}

        response = await test_client.get(f"/api/books/{body['id']}")
        assert response.status_code == 200
        assert response.json()["name"] == body["name"]
        assert response.json()["rawData"] is None

    @pytest.mark.asyncio
    async def test_array_body_is_400(self, test_client):
        response = await test_client.post("/api/books", json=[1, 2, 3])
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_malformed_json_is_500(self, test_client):
        response = await test_client.post(
            "/api/books",
            content=b'{"id": "x", "name":',
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 500
        assert response.json()["error"] == "invalid_body"

    @pytest.mark.asyncio
    async def test_unknown_book_is_404(self, test_client):
        response = await test_client.get("/api/books/nope")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_content_endpoint(self, test_client):
        await test_client.post(
            "/api/books",
            json={"id": "c", "name": "C.txt", "content": "Call me Ishmael.", "chapters": []},
        )
        response = await test_client.get("/api/books/c/content")
        assert response.status_code == 200
        assert response.json() == {"content": "Call me Ishmael.", "chapters": []}

        response = await test_client.get("/api/books/moby/content")
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_twice_succeeds(self, test_client, fake_redis):
        await test_client.post("/api/books", json=BOOK)

        first = await test_client.delete("/api/books/moby")
        second = await test_client.delete("/api/books/moby")

        assert first.status_code == 200
        assert first.json() == {"success": True}
        assert second.json() == {"success": True}
        assert fake_redis.data == {}
        assert (await test_client.get("/api/books/moby")).status_code == 404

    @pytest.mark.asyncio
    async def test_resave_replaces_metadata(self, test_client):
        await test_client.post("/api/books", json=BOOK)
        await test_client.post("/api/books", json={"id": "moby", "name": "Renamed.epub"})

        data = (await test_client.get("/api/books/moby")).json()
        assert data["name"] == "Renamed.epub"
        assert data["rawData"] == BOOK["rawData"]


class TestUserStateEndpoints:
    """Tests for /api/progress and /api/notes."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record", ["progress", "notes"])
    async def test_defaults_to_empty_record(self, test_client, record):
        response = await test_client.get(f"/api/{record}")
        assert response.status_code == 200
        assert response.json() == {record: {}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record", ["progress", "notes"])
    async def test_round_trip(self, test_client, record):
        value = {"moby": {"chapter": 3, "offset": 0.42}}

        response = await test_client.post(f"/api/{record}", json={record: value})
        assert response.json() == {"success": True}

        response = await test_client.get(f"/api/{record}")
        assert response.json() == {record: value}

    @pytest.mark.asyncio
    async def test_missing_field_stores_empty_record(self, test_client):
        await test_client.post("/api/progress", json={"progress": {"a": 1}})
        await test_client.post("/api/progress", json={})

        response = await test_client.get("/api/progress")
        assert response.json() == {"progress": {}}

    @pytest.mark.asyncio
    @pytest.mark.parametrize("record", ["progress", "notes"])
    async def test_non_object_body_stores_empty_record(self, test_client, record):
        await test_client.post(f"/api/{record}", json={record: {"a": 1}})

        response = await test_client.post(f"/api/{record}", json=[1, 2])
        assert response.status_code == 200
        assert response.json() == {"success": True}
        assert (await test_client.get(f"/api/{record}")).json() == {record: {}}

    @pytest.mark.asyncio
    async def test_malformed_json_is_500(self, test_client):
        response = await test_client.post(
            "/api/notes",
            content=b"not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 500


class TestStatusEndpoint:
    """Tests for /api/status."""

    @pytest.mark.asyncio
    async def test_connected(self, test_client):
        response = await test_client.get("/api/status")
        assert response.status_code == 200
        assert response.json() == {"redis": "connected"}

    @pytest.mark.asyncio
    async def test_ping_failure_reports_error(self, test_client, fake_redis):
        fake_redis.fail_next(RedisConnectionError("Connection reset"), times=10)

        response = await test_client.get("/api/status")
        assert response.status_code == 200
        assert response.json() == {"redis": "error"}


class TestApiRouting:
    """Unknown /api paths and the store guard."""

    @pytest.mark.asyncio
    async def test_unknown_api_path_is_404(self, test_client):
        response = await test_client.get("/api/unknown")
        assert response.status_code == 404
        assert response.json()["error"] == "not_found"

    @pytest.mark.asyncio
    async def test_unsupported_method_is_404(self, test_client):
        response = await test_client.put("/api/books", json=BOOK)
        assert response.status_code == 404

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "method,path",
        [
            ("GET", "/api/books"),
            ("POST", "/api/books"),
            ("GET", "/api/books/moby"),
            ("DELETE", "/api/books/moby"),
            ("GET", "/api/progress"),
            ("POST", "/api/notes"),
            ("GET", "/api/status"),
            ("GET", "/api/unknown"),
            ("PUT", "/api/books"),
        ],
    )
    async def test_offline_api_is_503(self, offline_client, method, path):
        response = await offline_client.request(method, path, content=b"{not json")
        assert response.status_code == 503
        body = response.json()
        assert body["error"] == "storage_unavailable"
        assert body["message"] == "Cloud storage not available"
        assert response.headers["access-control-allow-origin"] == "*"

    @pytest.mark.asyncio
    async def test_storage_errors_hidden_when_details_disabled(self, test_client, fake_redis):
        fake_redis.data["user:notes"] = "{corrupt"

        with patch.object(settings, "expose_error_details", False):
            response = await test_client.get("/api/notes")

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "storage_error"
        assert "user:notes" not in body["message"]

    @pytest.mark.asyncio
    async def test_storage_errors_shown_when_details_enabled(self, test_client, fake_redis):
        fake_redis.data["user:notes"] = "{corrupt"

        with patch.object(settings, "expose_error_details", True):
            response = await test_client.get("/api/notes")

        assert response.status_code == 500
        assert "user:notes" in response.json()["message"]


class TestCrossOrigin:
    """Tests for the open cross-origin policy."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/books", "/api/books/moby", "/", "/library/42"])
    async def test_options_is_204(self, test_client, path):
        response = await test_client.options(path)
        assert response.status_code == 204
        assert response.content == b""
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-methods"] == "GET, POST, PUT, DELETE, OPTIONS"
        assert response.headers["access-control-allow-headers"] == "Content-Type"

    @pytest.mark.asyncio
    async def test_options_without_store(self, offline_client):
        response = await offline_client.options("/api/books")
        assert response.status_code == 204

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/api/books", "/api/books/nope", "/api/unknown", "/app.js"])
    async def test_allow_origin_on_every_response(self, test_client, path):
        response = await test_client.get(path)
        assert response.headers["access-control-allow-origin"] == "*"


class TestRequestId:
    """Tests for X-Request-ID propagation."""

    @pytest.mark.asyncio
    async def test_generated_when_absent(self, test_client):
        response = await test_client.get("/api/status")
        assert len(response.headers["x-request-id"]) == 8

    @pytest.mark.asyncio
    async def test_client_id_echoed(self, test_client):
        response = await test_client.get("/api/books/nope", headers={"X-Request-ID": "abc123"})
        assert response.headers["x-request-id"] == "abc123"
        assert response.json()["request_id"] == "abc123"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("header", ["has space", "x" * 65, "semi;colon"])
    async def test_unsafe_client_id_replaced(self, test_client, header):
        response = await test_client.get("/api/status", headers={"X-Request-ID": header})
        rid = response.headers["x-request-id"]
        assert rid != header
        assert len(rid) == 8

    @pytest.mark.asyncio
    async def test_unexpected_error_body_carries_request_id(self, store, static_files, fake_redis):
        """The fallback handler runs outside the middleware stack."""
        from readnote.main import create_app

        app = create_app(store=store, static_files=static_files)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        fake_redis.fail_next(RuntimeError("driver bug"), times=1)

        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/api/progress", headers={"X-Request-ID": "req-42"})

        assert response.status_code == 500
        body = response.json()
        assert body["error"] == "internal_server_error"
        assert body["request_id"] == "req-42"
        assert response.headers["access-control-allow-origin"] == "*"
