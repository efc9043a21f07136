# catalog_auth/shared/middleware/security_headers_middleware.py

"""
Middleware for adding HTTP security headers.

This module implements a middleware that adds security headers
to HTTP responses to protect against common web vulnerabilities.
"""

import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Configure logger
logger = logging.getLogger(__name__)

# Public key set may be cached by verifiers
CACHEABLE_PATHS = ("/.well-known/jwks.json",)


class AsyncSecurityHeadersMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds security headers to all HTTP responses.

    API responses carry credentials, so they are never cached, except the
    public key set.
    """

    async def dispatch(self, request: Request, call_next):
        # Process the request
        response = await call_next(request)

        path = request.url.path
        is_docs_route = path in ["/docs", "/redoc", "/openapi.json"] or path.startswith(("/docs/", "/redoc/"))

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["Referrer-Policy"] = "no-referrer"

        if not is_docs_route:
            # Restrictive CSP for API routes
            response.headers["Content-Security-Policy"] = "default-src 'none'; frame-ancestors 'none'"

        if path in CACHEABLE_PATHS:
            response.headers["Cache-Control"] = "public, max-age=300"
        elif not is_docs_route:
            response.headers["Cache-Control"] = "no-store"
            response.headers["Pragma"] = "no-cache"

        settings = getattr(request.app.state, "settings", None)
        if settings is not None and settings.ENVIRONMENT == "production":
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        return response
