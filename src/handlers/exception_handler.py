"""Global exception handlers for consistent error responses."""

from typing import Any

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from src.exceptions import RelayError
from src.logging.config import get_logger

logger = get_logger(__name__)

_HTTP_ERROR_CODES = {
    status.HTTP_404_NOT_FOUND: ("NOT_FOUND", "Not Found"),
    status.HTTP_405_METHOD_NOT_ALLOWED: ("METHOD_NOT_ALLOWED", "Method Not Allowed"),
    status.HTTP_413_REQUEST_ENTITY_TOO_LARGE: ("PAYLOAD_TOO_LARGE", "Payload Too Large"),
}


def create_error_response(
    error_code: str,
    message: str,
    status_code: int,
    details: dict[str, Any] | None = None,
    correlation_id: str | None = None,
    hint: str | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    """
    Create standardized error response.

    Args:
        error_code: Machine-readable error code
        message: Human-readable error message, sent as "error"
        status_code: HTTP status code
        details: Additional error details
        correlation_id: Request correlation ID for tracing
        hint: Optional guidance, sent as "message"
        headers: Extra response headers

    Returns:
        JSONResponse with error information
    """
    content: dict[str, Any] = {
        "error": message,
        "error_code": error_code,
        "details": details or {},
    }
    if hint:
        content["message"] = hint
    if correlation_id:
        content["correlation_id"] = correlation_id

    return JSONResponse(status_code=status_code, content=content, headers=headers)


async def relay_exception_handler(request: Request, exc: RelayError) -> JSONResponse:
    """
    Handle RelayError and its subclasses.

    Args:
        request: FastAPI request
        exc: RelayError instance

    Returns:
        JSONResponse with error details
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    log = logger.error if exc.status_code >= 500 else logger.info
    log(
        f"{type(exc).__name__}: {exc.message}",
        extra={
            "correlation_id": correlation_id,
            "context": {
                "error_code": exc.error_code,
                "status_code": exc.status_code,
                "path": request.url.path,
            },
        },
    )

    return create_error_response(
        error_code=exc.error_code,
        message=exc.message,
        status_code=exc.status_code,
        details=exc.details,
        correlation_id=correlation_id,
        hint=exc.hint,
    )


async def http_exception_handler(
    request: Request, exc: StarletteHTTPException
) -> JSONResponse:
    """
    Render routing errors (unknown path, wrong method) in the same shape.

    Args:
        request: FastAPI request
        exc: Starlette HTTPException

    Returns:
        JSONResponse with error details
    """
    correlation_id = getattr(request.state, "correlation_id", None)
    error_code, message = _HTTP_ERROR_CODES.get(
        exc.status_code, ("HTTP_ERROR", str(exc.detail))
    )
    return create_error_response(
        error_code=error_code,
        message=message,
        status_code=exc.status_code,
        correlation_id=correlation_id,
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """
    Handle Pydantic validation errors from FastAPI.

    Args:
        request: FastAPI request
        exc: RequestValidationError from Pydantic

    Returns:
        JSONResponse with validation error details
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    validation_errors = []
    for error in exc.errors():
        # Skip the 'body' prefix for cleaner field paths
        field = ".".join(str(loc) for loc in error["loc"] if loc != "body") or "request"
        msg = "Field is required" if error["type"] == "missing" else error["msg"]
        validation_errors.append(
            {"field": field, "message": msg, "type": error["type"]}
        )

    if validation_errors:
        first = validation_errors[0]
        summary = f"{first['field']}: {first['message']}"
        if len(validation_errors) > 1:
            summary += f" (and {len(validation_errors) - 1} more errors)"
    else:
        summary = "Invalid request data"

    return create_error_response(
        error_code="VALIDATION_ERROR",
        message=summary,
        status_code=status.HTTP_400_BAD_REQUEST,
        details={"validation_errors": validation_errors},
        correlation_id=correlation_id,
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected exceptions.

    Logs the full traceback and returns a generic error to the client.

    Args:
        request: FastAPI request
        exc: Any unhandled exception

    Returns:
        JSONResponse with generic error message
    """
    correlation_id = getattr(request.state, "correlation_id", None)

    logger.error(
        f"Unhandled exception: {type(exc).__name__}: {exc}",
        exc_info=exc,
        extra={
            "correlation_id": correlation_id,
            "context": {
                "exception_type": type(exc).__name__,
                "method": request.method,
                "path": request.url.path,
            },
        },
    )

    return create_error_response(
        error_code="INTERNAL_ERROR",
        message="An internal error occurred. Please contact support with the correlation ID.",
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        correlation_id=correlation_id,
    )
