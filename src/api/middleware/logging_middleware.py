"""Request logging middleware

Logs method, path, status and latency of every request with a request
id. Request and response bodies are never logged.
"""

import logging
import time
import uuid
from typing import Awaitable, Callable
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            duration_ms = (time.perf_counter() - start) * 1000
            logger.exception(
                f"[{request_id}] {request.method} {request.url.path} raised after {duration_ms:.1f}ms"
            )
            raise

        duration_ms = (time.perf_counter() - start) * 1000
        logger.info(
            f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
            f"in {duration_ms:.1f}ms"
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response
