"""Request logging middleware with correlation ID support."""

import time
import uuid
from collections.abc import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from src.logging.config import get_logger

logger = get_logger(__name__)

CORRELATION_HEADER = "X-Request-ID"

# Query parameters whose values never reach the logs
_MASKED_PARAMS = frozenset({"secret"})


def _safe_query_params(request: Request) -> dict[str, str]:
    """Query parameters with secret values masked."""
    return {
        key: "***" if key in _MASKED_PARAMS else value
        for key, value in request.query_params.items()
    }


def _request_context(request: Request, **extra: object) -> dict[str, object]:
    context: dict[str, object] = {
        "method": request.method,
        "path": request.url.path,
    }
    context.update(extra)
    return context


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests and responses.

    Reuses the caller's X-Request-ID or generates one, stores it on
    request.state for handlers and error responses, and echoes it back
    in the response headers. The trigger type is logged when the
    scheduler dependency has set it.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Process the request and add logging.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            The response from the handler
        """
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        start_time = time.time()
        logger.info(
            "Request started",
            extra={
                "correlation_id": correlation_id,
                "context": _request_context(
                    request,
                    query_params=_safe_query_params(request),
                    client_host=request.client.host if request.client else None,
                ),
            },
        )

        try:
            response = await call_next(request)
        except Exception as exc:
            logger.error(
                "Request failed with exception",
                exc_info=exc,
                extra={
                    "correlation_id": correlation_id,
                    "context": _request_context(
                        request,
                        response_time_ms=round((time.time() - start_time) * 1000, 2),
                    ),
                },
            )
            raise

        logger.info(
            "Request completed",
            extra={
                "correlation_id": correlation_id,
                "context": _request_context(
                    request,
                    status_code=response.status_code,
                    response_time_ms=round((time.time() - start_time) * 1000, 2),
                    trigger=getattr(request.state, "trigger", None),
                ),
            },
        )

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
