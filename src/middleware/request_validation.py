"""Request validation middleware."""

from collections.abc import Callable

from fastapi import Request, Response, status
from starlette.middleware.base import BaseHTTPMiddleware

from src.config import settings
from src.handlers.exception_handler import create_error_response
from src.logging.config import get_logger

logger = get_logger(__name__)


class RequestSizeValidationMiddleware(BaseHTTPMiddleware):
    """
    Middleware to reject oversized requests before the body is read.

    Uploads arrive base64 encoded, so the limit sits above the decoded
    per-file cap. Returns 413 Payload Too Large.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """
        Validate request size and process request.

        Args:
            request: The incoming request
            call_next: The next middleware/handler in the chain

        Returns:
            413 error response, or the response from the handler
        """
        content_length = request.headers.get("content-length")
        max_size = settings.max_request_size_bytes

        try:
            size = int(content_length) if content_length else 0
        except ValueError:
            # Malformed Content-Length is left to the server to reject
            size = 0

        if size > max_size:
            correlation_id = getattr(request.state, "correlation_id", None)
            size_mb = size / 1024 / 1024
            max_mb = max_size / 1024 / 1024
            logger.info(
                "Rejected oversized request",
                extra={
                    "correlation_id": correlation_id,
                    "context": {"path": request.url.path, "content_length": size},
                },
            )
            return create_error_response(
                error_code="PAYLOAD_TOO_LARGE",
                message=f"Request size {size_mb:.1f}MB exceeds maximum {max_mb:.0f}MB",
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                details={
                    "request_size": f"{size_mb:.1f}MB",
                    "max_size": f"{max_mb:.0f}MB",
                },
                correlation_id=correlation_id,
            )

        return await call_next(request)
