# catalog_auth/shared/middleware/__init__.py

from catalog_auth.shared.middleware.exception_middleware import AsyncExceptionMiddleware, validation_exception_handler
from catalog_auth.shared.middleware.logging_middleware import AsyncRequestLoggingMiddleware
from catalog_auth.shared.middleware.security_headers_middleware import AsyncSecurityHeadersMiddleware

# Export all for easy imports
__all__ = [
    "AsyncExceptionMiddleware",
    "AsyncRequestLoggingMiddleware",
    "AsyncSecurityHeadersMiddleware",
    "validation_exception_handler",
]
