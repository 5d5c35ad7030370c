"""Request/Response middleware for consistent API behavior.

Assigns request ids, enforces the request size limit, adds timing headers
and logs every request/response pair. Response bodies pass through untouched.
"""

from __future__ import annotations

import logging
import time
from typing import Callable
from uuid import uuid4

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..core.structured_logging import request_id_var

logger = logging.getLogger(__name__)


class RequestResponseMiddleware(BaseHTTPMiddleware):
    """Middleware for consistent request/response handling."""

    def __init__(
        self,
        app: ASGIApp,
        max_request_size: int = 50 * 1024 * 1024,  # 50MB
        log_requests: bool = True,
    ):
        super().__init__(app)
        self.max_request_size = max_request_size
        self.log_requests = log_requests

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        start_time = time.time()

        try:
            content_length = self._content_length(request)
            if content_length > self.max_request_size:
                logger.warning(
                    f"Rejected oversized request: {content_length} bytes",
                    extra={"path": request.url.path, "content_length": content_length},
                )
                response = JSONResponse(
                    status_code=413,
                    content={"error": f"Request size {content_length} exceeds maximum {self.max_request_size} bytes"},
                )
            else:
                response = await call_next(request)

            processing_time_ms = int((time.time() - start_time) * 1000)
            response.headers["X-Request-ID"] = request_id
            response.headers["X-Processing-Time"] = f"{processing_time_ms}ms"

            if self.log_requests:
                self._log_response(request, response, processing_time_ms)
            return response
        finally:
            request_id_var.reset(token)

    @staticmethod
    def _content_length(request: Request) -> int:
        try:
            return int(request.headers.get("content-length", 0))
        except ValueError:
            return 0

    def _log_response(self, request: Request, response: Response, processing_time_ms: int):
        """Log outgoing response details."""
        log_data = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "processing_time_ms": processing_time_ms,
            "remote_addr": self._get_client_ip(request),
        }

        if response.status_code >= 500:
            log_level = logging.ERROR
            log_message = f"Server error response: {response.status_code}"
        elif response.status_code >= 400:
            log_level = logging.WARNING
            log_message = f"Client error response: {response.status_code}"
        else:
            log_level = logging.INFO
            log_message = f"Successful response: {response.status_code}"

        logger.log(
            log_level,
            f"{log_message} for {request.method} {request.url.path} ({processing_time_ms}ms)",
            extra=log_data,
        )

    def _get_client_ip(self, request: Request) -> str:
        """Extract client IP address from request."""
        forwarded_for = request.headers.get("x-forwarded-for")
        if forwarded_for:
            return forwarded_for.split(",")[0].strip()

        real_ip = request.headers.get("x-real-ip")
        if real_ip:
            return real_ip

        if request.client:
            return request.client.host
        return "unknown"
