# catalog_auth/shared/middleware/exception_middleware.py

"""
Middleware for centralized exception handling.

This is the only place where an error kind becomes an HTTP status code.
Token endpoint errors are rendered as OAuth2 error bodies
({error, error_description}); everything else as {error, details}.
"""

import time
import logging
import traceback
from typing import Callable

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_auth.domain.exceptions import DomainException, ErrorKind

# Configure logger
logger = logging.getLogger(__name__)

STATUS_BY_KIND = {
    ErrorKind.INVALID: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNAUTHENTICATED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.UNAUTHORIZED: status.HTTP_403_FORBIDDEN,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.CONFLICT: status.HTTP_409_CONFLICT,
    ErrorKind.INTERNAL: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _is_production(request: Request) -> bool:
    settings = getattr(request.app.state, "settings", None)
    return settings is not None and settings.ENVIRONMENT == "production"


def render_domain_exception(exc: DomainException, production: bool = False) -> JSONResponse:
    status_code = STATUS_BY_KIND.get(exc.kind, status.HTTP_500_INTERNAL_SERVER_ERROR)
    message = exc.detail or str(exc)
    if production and exc.kind == ErrorKind.INTERNAL:
        message = "Internal server error"

    if exc.oauth:
        content = {"error": exc.error_code}
        if message:
            content["error_description"] = message
    else:
        content = {"error": exc.error_code, "details": message}

    headers = None
    if exc.kind == ErrorKind.UNAUTHENTICATED and not exc.oauth:
        headers = {"WWW-Authenticate": "Bearer"}
    if exc.oauth:
        headers = {"Cache-Control": "no-store", "Pragma": "no-cache"}

    return JSONResponse(status_code=status_code, content=content, headers=headers)


class AsyncExceptionMiddleware(BaseHTTPMiddleware):
    """
    Middleware for centralized exception handling.
    Captures specific exceptions and formats the response accordingly.
    """

    async def dispatch(self, request: Request, call_next: Callable):
        start_time = time.time()
        try:
            response = await call_next(request)
            process_time = time.time() - start_time
            response.headers["X-Process-Time"] = str(process_time)
            return response

        except DomainException as exc:
            client = request.client.host if request.client else "N/A"
            if exc.kind == ErrorKind.INTERNAL:
                logger.error(
                    f"Domain exception: {str(exc)} | Code: {exc.error_code} | "
                    f"Path: {request.url.path} | Client: {client}"
                )
            else:
                logger.warning(
                    f"Domain exception: {str(exc)} | Code: {exc.error_code} | "
                    f"Path: {request.url.path} | Client: {client}"
                )
            return render_domain_exception(exc, production=_is_production(request))

        except SQLAlchemyError as exc:
            # Errors that escaped the repositories
            if _is_production(request):
                error_message = "Internal database error"
                logger.error(f"Database error: Type={type(exc).__name__} | Path: {request.url.path}")
            else:
                error_message = str(exc)
                logger.error(f"Database error: {str(exc)} | Path: {request.url.path}")

            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "database_error", "details": error_message},
            )

        except Exception as exc:
            # Unhandled exceptions
            if _is_production(request):
                error_message = "Internal server error"
                logger.exception(
                    f"Unhandled exception: Type={type(exc).__name__} | "
                    f"Path: {request.url.path} | "
                    f"Client: {request.client.host if request.client else 'N/A'}"
                )
            else:
                error_message = str(exc)
                stack_trace = traceback.format_exc()
                logger.exception(
                    f"Unhandled exception: {str(exc)} | "
                    f"Path: {request.url.path} | "
                    f"Client: {request.client.host if request.client else 'N/A'}\n"
                    f"Traceback: {stack_trace}"
                )
            return JSONResponse(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                content={"error": "server_error", "details": error_message},
            )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and parameters are client errors (400), not 422."""
    errors = [
        f"{'.'.join(str(p) for p in error.get('loc', ()) if p != 'body')}: {error.get('msg')}"
        for error in exc.errors()
    ]
    logger.warning(f"Validation error: {errors} | Path: {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"error": "invalid_input", "details": "; ".join(errors)},
    )
