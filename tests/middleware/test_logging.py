"""Tests for logging middleware and the JSON log formatter."""

import json
import logging
import uuid
from io import StringIO
from unittest.mock import patch

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from src.logging.config import JSONFormatter
from src.middleware.logging import LoggingMiddleware


@pytest.fixture
def app_with_logging() -> FastAPI:
    """Create a test FastAPI app with logging middleware."""
    app = FastAPI()
    app.add_middleware(LoggingMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict[str, str]:
        return {"correlation_id": request.state.correlation_id}

    @app.get("/scheduled")
    async def scheduled(request: Request) -> dict[str, str]:
        request.state.trigger = "scheduled"
        return {"ok": "yes"}

    @app.get("/error")
    async def error_endpoint() -> None:
        raise ValueError("Test error")

    return app


def _capture(logger_name: str, level: int) -> tuple[logging.Logger, StringIO]:
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JSONFormatter())
    logger = logging.getLogger(logger_name)
    logger.handlers = [handler]
    logger.setLevel(level)
    logger.propagate = False
    return logger, stream


@pytest.mark.asyncio
async def test_generates_correlation_id(app_with_logging: FastAPI) -> None:
    """A request without X-Request-ID gets a fresh UUID, echoed in the response."""
    transport = ASGITransport(app=app_with_logging)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/echo")

    assert response.status_code == 200
    correlation_id = response.json()["correlation_id"]
    uuid.UUID(correlation_id)
    assert response.headers["x-request-id"] == correlation_id


@pytest.mark.asyncio
async def test_reuses_incoming_correlation_id(app_with_logging: FastAPI) -> None:
    """X-Request-ID from the caller is propagated unchanged."""
    transport = ASGITransport(app=app_with_logging)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/echo", headers={"X-Request-ID": "req-123"})

    assert response.json()["correlation_id"] == "req-123"
    assert response.headers["x-request-id"] == "req-123"


@pytest.mark.asyncio
async def test_logs_request_start_with_masked_secret(app_with_logging: FastAPI) -> None:
    """The start log carries method, path and query, with secret masked."""
    with patch("src.middleware.logging.logger") as mock_logger:
        transport = ASGITransport(app=app_with_logging)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            await client.get("/echo?cron=true&secret=hunter2")

    first_call = mock_logger.info.call_args_list[0]
    assert "Request started" in first_call[0]
    context = first_call[1]["extra"]["context"]
    assert context["method"] == "GET"
    assert context["path"] == "/echo"
    assert context["query_params"] == {"cron": "true", "secret": "***"}


@pytest.mark.asyncio
async def test_logs_completion_with_status_and_trigger(app_with_logging: FastAPI) -> None:
    """The completion log carries status, timing and the trigger type."""
    with patch("src.middleware.logging.logger") as mock_logger:
        transport = ASGITransport(app=app_with_logging)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            await client.get("/scheduled")

    last_call = mock_logger.info.call_args_list[-1]
    assert "Request completed" in last_call[0]
    context = last_call[1]["extra"]["context"]
    assert context["status_code"] == 200
    assert context["response_time_ms"] >= 0
    assert context["trigger"] == "scheduled"


@pytest.mark.asyncio
async def test_logs_unhandled_errors(app_with_logging: FastAPI) -> None:
    """An exception escaping the route is logged with exc_info and re-raised."""
    with patch("src.middleware.logging.logger") as mock_logger:
        transport = ASGITransport(app=app_with_logging)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            with pytest.raises(ValueError):
                await client.get("/error")

    error_call = mock_logger.error.call_args_list[0]
    assert "Request failed with exception" in error_call[0]
    assert "exc_info" in error_call[1]


def test_json_formatter_merges_context() -> None:
    """Context extras are merged into the top-level JSON object."""
    logger, stream = _capture("test_json_context", logging.INFO)

    logger.info(
        "Poll cycle completed",
        extra={"correlation_id": "abc", "context": {"emails_sent": 2}},
    )

    data = json.loads(stream.getvalue().strip())
    assert data["level"] == "INFO"
    assert data["message"] == "Poll cycle completed"
    assert data["correlation_id"] == "abc"
    assert data["emails_sent"] == 2
    assert "timestamp" in data
    assert data["logger"] == "test_json_context"


def test_json_formatter_includes_exception() -> None:
    """exc_info is rendered as a formatted traceback."""
    logger, stream = _capture("test_json_exception", logging.ERROR)

    try:
        raise ValueError("smtp exploded")
    except ValueError:
        logger.error("Send failed", exc_info=True)

    data = json.loads(stream.getvalue().strip())
    assert "ValueError" in data["exception"]
    assert "smtp exploded" in data["exception"]


def test_json_formatter_serialises_non_json_values() -> None:
    """Values json cannot encode natively are stringified, not dropped."""
    logger, stream = _capture("test_json_default", logging.INFO)

    logger.info("Queried", extra={"context": {"statuses": frozenset({"Completed"})}})

    data = json.loads(stream.getvalue().strip())
    assert "Completed" in data["statuses"]


def test_json_formatter_debug_includes_location() -> None:
    """DEBUG records carry file, line and function."""
    logger, stream = _capture("test_json_debug", logging.DEBUG)

    logger.debug("Debug message")

    data = json.loads(stream.getvalue().strip())
    assert "file" in data
    assert "line" in data
    assert data["function"] == "test_json_formatter_debug_includes_location"
