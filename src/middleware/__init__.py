"""Middleware components for request processing."""

from src.middleware.logging import LoggingMiddleware
from src.middleware.request_validation import RequestSizeValidationMiddleware

__all__ = [
    "LoggingMiddleware",
    "RequestSizeValidationMiddleware",
]
