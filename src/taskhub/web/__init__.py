"""Web interface for Taskhub.

This module provides the FastAPI application: the versioned REST API, its
response envelope, request logging middleware and dependency wiring.
"""

from __future__ import annotations

from taskhub.web.app import create_app
from taskhub.web.envelope import ApiResponse, PaginationInfo, error_response, ok
from taskhub.web.middleware import RequestLoggingMiddleware

__all__ = [
    "create_app",
    "RequestLoggingMiddleware",
    "ApiResponse",
    "PaginationInfo",
    "ok",
    "error_response",
]
