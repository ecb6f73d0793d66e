"""Tests for the /uploads and /files routes."""

import base64
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from httpx import ASGITransport, AsyncClient

from src.main import app
from src.repositories.upload_repository import StoredBlob

EXPIRES_AT = datetime(2025, 11, 12, 12, 0, tzinfo=UTC)


@pytest.fixture
def mock_storage():
    """Patch the S3-backed repository methods."""
    with (
        patch(
            "src.repositories.upload_repository.UploadRepository.put",
            new_callable=AsyncMock,
            return_value=EXPIRES_AT,
        ) as put,
        patch(
            "src.repositories.upload_repository.UploadRepository.get",
            new_callable=AsyncMock,
        ) as get,
        patch(
            "src.repositories.upload_repository.UploadRepository.delete",
            new_callable=AsyncMock,
        ) as delete,
    ):
        yield {"put": put, "get": get, "delete": delete}


async def client_for_app() -> AsyncClient:
    return AsyncClient(transport=ASGITransport(app=app), base_url="http://test")


@pytest.mark.asyncio
async def test_upload_returns_camel_case_summary(mock_storage):
    payload = {
        "files": [
            {
                "name": "photo.png",
                "type": "image/png",
                "size": 3,
                "data": base64.b64encode(b"abc").decode(),
            },
            {"name": "notes.txt", "type": "text/plain", "size": 3, "data": "YWJj"},
        ]
    }

    async with await client_for_app() as client:
        response = await client.post("/uploads", json=payload)

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["totalFiles"] == 2
    assert data["successfulCount"] == 1
    assert data["failedCount"] == 1
    uploaded = data["uploadedFiles"][0]
    assert uploaded["fileName"] == "photo.png"
    assert uploaded["contentType"] == "image/png"
    assert uploaded["url"].startswith("http://localhost:8000/files/")
    assert uploaded["url"].endswith("_photo.png")
    assert data["failedFiles"] == [
        {
            "success": False,
            "fileName": "notes.txt",
            "error": "File type text/plain is not supported",
        }
    ]


@pytest.mark.asyncio
async def test_upload_without_files_is_400(mock_storage):
    async with await client_for_app() as client:
        response = await client.post("/uploads", json={"files": []})

    assert response.status_code == 400
    assert response.json()["error"] == "No files provided"


@pytest.mark.asyncio
async def test_upload_with_malformed_body_is_400(mock_storage):
    async with await client_for_app() as client:
        response = await client.post("/uploads", json={"files": [{"type": "image/png"}]})

    assert response.status_code == 400
    assert response.json()["error_code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_serve_file_returns_bytes_with_cache_headers(mock_storage):
    mock_storage["get"].return_value = StoredBlob(
        "1_photo.png", b"png-bytes", "image/png", datetime.now(UTC) + timedelta(hours=1)
    )

    async with await client_for_app() as client:
        response = await client.get("/files/1_photo.png")

    assert response.status_code == 200
    assert response.content == b"png-bytes"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=3600"
    assert response.headers["content-disposition"] == 'inline; filename="1_photo.png"'


@pytest.mark.asyncio
async def test_serve_missing_file_is_404(mock_storage):
    mock_storage["get"].return_value = None

    async with await client_for_app() as client:
        response = await client.get("/files/1_gone.png")

    assert response.status_code == 404
    assert response.json()["error"] == "File not found"


@pytest.mark.asyncio
async def test_serve_expired_file_is_404(mock_storage):
    mock_storage["get"].return_value = StoredBlob(
        "1_old.png", b"png-bytes", "image/png", datetime.now(UTC) - timedelta(seconds=1)
    )

    async with await client_for_app() as client:
        response = await client.get("/files/1_old.png")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_serve_file_rejects_post(mock_storage):
    async with await client_for_app() as client:
        response = await client.post("/files/1_photo.png")

    assert response.status_code == 405
    assert response.json()["error"] == "Method Not Allowed"
