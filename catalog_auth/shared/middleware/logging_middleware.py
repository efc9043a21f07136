# catalog_auth/shared/middleware/logging_middleware.py

"""
Middleware for HTTP request logging.

One line per request and one per response, tied together by a request id
(taken from X-Request-ID when the caller sends one). Headers and bodies are
never logged: they carry client secrets and bearer tokens.
"""

import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Configure logger
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# Polled by orchestrators; logged at DEBUG only
QUIET_PATHS = ("/auth/health",)


class AsyncRequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request logging.
    Production logs keep method, path and status; other environments add
    query parameters, client address and timing.
    """

    async def dispatch(self, request: Request, call_next):
        settings = getattr(request.app.state, "settings", None)
        production = settings is not None and settings.ENVIRONMENT == "production"
        level = logging.DEBUG if request.url.path in QUIET_PATHS else logging.INFO

        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex[:16]
        request.state.request_id = request_id

        target = f"{request.method} {request.url.path}"
        if production:
            logger.log(level, f"[{request_id}] Request: {target}")
        else:
            query_params = dict(request.query_params)
            logger.log(
                level,
                f"[{request_id}] Request: {target} | "
                f"Query: {query_params or 'N/A'} | "
                f"Client: {request.client.host if request.client else 'N/A'}"
            )

        started = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - started

        response.headers[REQUEST_ID_HEADER] = request_id
        if production:
            logger.log(level, f"[{request_id}] Response: {response.status_code} for {target}")
        else:
            logger.log(level, f"[{request_id}] Response: {response.status_code} for {target} | Time: {elapsed:.4f}s")

        return response
