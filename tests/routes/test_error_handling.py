"""Error response shape across handlers and middleware."""

import json
from unittest.mock import AsyncMock

import pytest
from fastapi import Request
from fastapi.exceptions import RequestValidationError
from httpx import ASGITransport, AsyncClient
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.config import settings
from src.exceptions import (
    ConfigurationError,
    EmailDeliveryError,
    ForbiddenError,
    NotFoundError,
    RecordStoreError,
    UploadError,
)
from src.handlers.exception_handler import (
    generic_exception_handler,
    http_exception_handler,
    relay_exception_handler,
    validation_exception_handler,
)
from src.main import app


def mock_request(correlation_id: str = "test-correlation-id") -> AsyncMock:
    request = AsyncMock(spec=Request)
    request.state.correlation_id = correlation_id
    request.method = "GET"
    request.url.path = "/test"
    return request


@pytest.mark.parametrize(
    ("exc", "status_code", "error_code"),
    [
        (ForbiddenError(), 403, "FORBIDDEN"),
        (NotFoundError(resource="x.png"), 404, "NOT_FOUND"),
        (ConfigurationError(), 500, "CONFIGURATION_ERROR"),
        (RecordStoreError(upstream_status=502), 500, "UPSTREAM_ERROR"),
        (EmailDeliveryError(smtp_code=535), 500, "EMAIL_DELIVERY_ERROR"),
        (UploadError("bad file", file_name="a.png"), 400, "UPLOAD_REJECTED"),
    ],
)
@pytest.mark.asyncio
async def test_relay_errors_render_error_shape(exc, status_code, error_code) -> None:
    response = await relay_exception_handler(mock_request(), exc)

    assert response.status_code == status_code
    data = json.loads(response.body)
    assert data["error"] == exc.message
    assert data["error_code"] == error_code
    assert data["details"] == exc.details
    assert data["correlation_id"] == "test-correlation-id"


@pytest.mark.asyncio
async def test_hint_is_rendered_as_message() -> None:
    exc = ForbiddenError(message="Nope", hint="Use ?cron=true for manual testing")

    data = json.loads((await relay_exception_handler(mock_request(), exc)).body)

    assert data["message"] == "Use ?cron=true for manual testing"


@pytest.mark.asyncio
async def test_validation_errors_are_400_with_field_paths() -> None:
    exc = RequestValidationError(
        errors=[
            {"loc": ("body", "files", 0, "name"), "msg": "field required", "type": "missing"},
            {"loc": ("body", "files", 0, "size"), "msg": "must be >= 0", "type": "greater_than_equal"},
        ]
    )

    response = await validation_exception_handler(mock_request(), exc)

    assert response.status_code == 400
    data = json.loads(response.body)
    assert data["error_code"] == "VALIDATION_ERROR"
    assert data["error"] == "files.0.name: Field is required (and 1 more errors)"
    fields = [e["field"] for e in data["details"]["validation_errors"]]
    assert fields == ["files.0.name", "files.0.size"]


@pytest.mark.asyncio
async def test_http_405_is_rendered_with_allow_header() -> None:
    exc = StarletteHTTPException(status_code=405, headers={"Allow": "GET"})

    response = await http_exception_handler(mock_request(), exc)

    assert response.status_code == 405
    assert json.loads(response.body)["error"] == "Method Not Allowed"
    assert response.headers["allow"] == "GET"


@pytest.mark.asyncio
async def test_generic_exception_hides_details() -> None:
    response = await generic_exception_handler(mock_request(), RuntimeError("db password=x"))

    assert response.status_code == 500
    data = json.loads(response.body)
    assert data["error_code"] == "INTERNAL_ERROR"
    assert "password" not in data["error"]


@pytest.mark.asyncio
async def test_unknown_route_is_404_json() -> None:
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.get("/does-not-exist")

    assert response.status_code == 404
    assert response.json()["error"] == "Not Found"


@pytest.mark.asyncio
async def test_oversized_request_is_413(monkeypatch) -> None:
    monkeypatch.setattr(settings, "max_request_size_bytes", 1024)

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as client:
        response = await client.post(
            "/uploads", content=b"x" * 2048, headers={"Content-Type": "application/json"}
        )

    assert response.status_code == 413
    data = response.json()
    assert data["error_code"] == "PAYLOAD_TOO_LARGE"
    assert "x-request-id" in response.headers
