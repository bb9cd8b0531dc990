"""
Custom middleware for the FastAPI application.
"""

import time
from typing import Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.logging import log_request, log_response, set_correlation_id, get_correlation_id

CORRELATION_HEADER = "X-Correlation-ID"


class LoggingMiddleware(BaseHTTPMiddleware):
    """Request/response logging with correlation IDs."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Reuse an upstream correlation ID when the caller sends one
        correlation_id = set_correlation_id(request.headers.get(CORRELATION_HEADER))

        log_request(request, request.method, request.url.path, correlation_id=correlation_id)

        start_time = time.perf_counter()
        response = None
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            response_time_ms = (time.perf_counter() - start_time) * 1000
            log_response(status_code, response_time_ms, correlation_id)
            if response is not None:
                response.headers[CORRELATION_HEADER] = correlation_id

        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Adds security headers to every response."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
        # API responses carry project data; keep them out of shared caches
        if request.url.path.startswith("/api/"):
            response.headers["Cache-Control"] = "no-store"

        correlation_id = get_correlation_id()
        if correlation_id:
            response.headers[CORRELATION_HEADER] = correlation_id

        return response
