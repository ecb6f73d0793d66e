"""Custom exception classes for the Service Request Relay."""

from typing import Any


class RelayError(Exception):
    """Base exception for the relay handlers."""

    def __init__(
        self,
        message: str,
        status_code: int = 500,
        error_code: str = "INTERNAL_ERROR",
        details: dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        """
        Initialize exception.

        Args:
            message: Human-readable error message
            status_code: HTTP status code
            error_code: Machine-readable error code
            details: Additional error details
            hint: Optional guidance returned to the caller as "message"
        """
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_code = error_code
        self.details = details or {}
        self.hint = hint


class BadRequestError(RelayError):
    """Raised when the request is missing or has invalid fields (400)."""

    def __init__(
        self,
        message: str = "Bad request",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=400,
            error_code="BAD_REQUEST",
            details=details,
        )


class ForbiddenError(RelayError):
    """Raised when an invocation is not allowed (403)."""

    def __init__(
        self,
        message: str = "Forbidden: Access denied",
        details: dict[str, Any] | None = None,
        hint: str | None = None,
    ) -> None:
        """
        Initialize ForbiddenError.

        Args:
            message: Error message
            details: Additional error details
            hint: How the caller can gain access
        """
        super().__init__(
            message=message,
            status_code=403,
            error_code="FORBIDDEN",
            details=details,
            hint=hint,
        )


class NotFoundError(RelayError):
    """Raised when a file or upstream resource is not found (404)."""

    def __init__(
        self,
        message: str = "Not found",
        resource: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize NotFoundError.

        Args:
            message: Error message
            resource: Identifier of the missing resource
            details: Additional error details
        """
        error_details = details or {}
        if resource:
            error_details["resource"] = resource
        super().__init__(
            message=message,
            status_code=404,
            error_code="NOT_FOUND",
            details=error_details,
        )


class ConfigurationError(RelayError):
    """Raised when required environment configuration is missing (500)."""

    def __init__(
        self,
        message: str = "Configuration missing",
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            status_code=500,
            error_code="CONFIGURATION_ERROR",
            details=details,
        )


class RecordStoreError(RelayError):
    """
    Raised when the Notion API is unreachable or rejects a request.

    An empty query result is never an error; this covers transport,
    authentication and other non-2xx failures.
    """

    def __init__(
        self,
        message: str = "Record store request failed",
        upstream_status: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        """
        Initialize RecordStoreError.

        Args:
            message: Error message
            upstream_status: HTTP status returned by Notion, if any
            details: Additional error details
        """
        error_details = details or {}
        if upstream_status is not None:
            error_details["upstream_status"] = upstream_status
        super().__init__(
            message=message,
            status_code=500,
            error_code="UPSTREAM_ERROR",
            details=error_details,
        )
        self.upstream_status = upstream_status


class EmailDeliveryError(RelayError):
    """Raised by the SMTP self-test when the server cannot be used (500)."""

    def __init__(
        self,
        message: str = "SMTP test failed",
        smtp_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if smtp_code is not None:
            error_details["smtp_code"] = smtp_code
        super().__init__(
            message=message,
            status_code=500,
            error_code="EMAIL_DELIVERY_ERROR",
            details=error_details,
        )


class UploadError(RelayError):
    """Raised when a single staged file is rejected (400)."""

    def __init__(
        self,
        message: str,
        file_name: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        error_details = details or {}
        if file_name:
            error_details["file_name"] = file_name
        super().__init__(
            message=message,
            status_code=400,
            error_code="UPLOAD_REJECTED",
            details=error_details,
        )
        self.file_name = file_name
