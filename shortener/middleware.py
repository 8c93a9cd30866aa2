"""Request logging middleware.

Assigns each request an id (reusing an inbound X-Request-ID), echoes it in the
response headers and logs method, path, status and duration.
"""

import logging
import time
import uuid
from typing import Callable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

__all__ = ["RequestLoggingMiddleware", "REQUEST_ID_HEADER"]

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, logger: logging.Logger | None = None):
        super().__init__(app)
        self.logger = logger or logging.getLogger("shortener.http")

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        start_time = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                f"Unhandled error: {request.method} {request.url.path}",
                extra={"request_id": request_id},
            )
            raise

        duration_ms = (time.perf_counter() - start_time) * 1000
        response.headers[REQUEST_ID_HEADER] = request_id
        self.logger.info(
            f"{request.method} {request.url.path} - Status: {response.status_code} - Duration: {duration_ms:.2f}ms",
            extra={"request_id": request_id},
        )
        return response
