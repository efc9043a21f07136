# catalog_auth/domain/exceptions.py

"""
Domain exceptions for the authorization service.

Every exception carries an ErrorKind. The kind is the only thing the HTTP
boundary looks at to pick a status code (see shared/middleware/exception_middleware.py),
so the same failure always maps to the same status no matter where it is raised.
"""

from enum import Enum
from typing import Any, Optional


class ErrorKind(str, Enum):
    """Category of a failure, independent of transport."""
    INVALID = "invalid"
    UNAUTHENTICATED = "unauthenticated"
    UNAUTHORIZED = "unauthorized"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INTERNAL = "internal"


class DomainException(Exception):
    """
    Base exception for every error raised by the service.

    Attributes:
        kind: ErrorKind used to choose the response status
        detail: Human readable message
        error_code: Short machine readable code (OAuth2 error code where one applies)
        oauth: True when the error belongs to the token endpoint and must be
            rendered as an OAuth2 error body ({error, error_description})
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    error_code: str = "server_error"
    oauth: bool = False

    def __init__(self, detail: Optional[str] = None, *, error_code: Optional[str] = None):
        self.detail = detail
        if error_code is not None:
            self.error_code = error_code
        super().__init__(detail or self.error_code)


# ─── Token endpoint (OAuth2) errors ──────────────────────────────────────────

class InvalidRequest(DomainException):
    """A required request parameter is missing or malformed."""
    kind = ErrorKind.INVALID
    error_code = "invalid_request"
    oauth = True


class InvalidScope(DomainException):
    """None of the requested scopes may be granted to the client."""
    kind = ErrorKind.INVALID
    error_code = "invalid_scope"
    oauth = True


class UnsupportedGrantType(DomainException):
    kind = ErrorKind.INVALID
    error_code = "unsupported_grant_type"
    oauth = True


class InvalidClient(DomainException):
    """Client authentication failed (unknown id, wrong secret or missing credentials)."""
    kind = ErrorKind.UNAUTHENTICATED
    error_code = "invalid_client"
    oauth = True


class ServerError(DomainException):
    """Key loading or signing failed while minting a token."""
    kind = ErrorKind.INTERNAL
    error_code = "server_error"
    oauth = True


# ─── Bearer token errors ─────────────────────────────────────────────────────

class MissingBearerToken(DomainException):
    """The Authorization header is absent, empty or not a Bearer credential."""
    kind = ErrorKind.UNAUTHENTICATED
    error_code = "missing_bearer_token"

    def __init__(self, detail: str = "Missing bearer token"):
        super().__init__(detail)


class TokenVerificationError(DomainException):
    """Bad signature, unknown key, wrong audience, expiry or malformed claims."""
    kind = ErrorKind.UNAUTHENTICATED
    error_code = "invalid_token"

    def __init__(self, detail: str = "Invalid token"):
        super().__init__(detail)


class InsufficientPermissions(DomainException):
    """The token is valid but lacks the scope required by the route."""
    kind = ErrorKind.UNAUTHORIZED
    error_code = "insufficient_scope"

    def __init__(self, required_scope: Optional[str] = None, detail: Optional[str] = None):
        self.required_scope = required_scope
        if detail is None:
            detail = (
                f"Insufficient permissions: {required_scope} scope required"
                if required_scope else "Insufficient permissions"
            )
        super().__init__(detail)


class MissingManagementCredentials(DomainException):
    """The management identity headers were not sent."""
    kind = ErrorKind.UNAUTHENTICATED
    error_code = "missing_management_credentials"

    def __init__(self, detail: str = "Management client ID and secret are required"):
        super().__init__(detail)


# ─── Resource errors ─────────────────────────────────────────────────────────

class ResourceNotFoundException(DomainException):
    """Resource not found."""
    kind = ErrorKind.NOT_FOUND
    error_code = "not_found"

    def __init__(self, detail: str = "Resource not found", resource_id: Any = None):
        self.resource_id = resource_id
        resource_info = f" (ID: {resource_id})" if resource_id is not None else ""
        super().__init__(f"{detail}{resource_info}")


class ResourceAlreadyExistsException(DomainException):
    """Resource already exists."""
    kind = ErrorKind.CONFLICT
    error_code = "already_exists"

    def __init__(self, detail: str = "Resource already exists", resource_id: Any = None):
        self.resource_id = resource_id
        resource_info = f" (ID: {resource_id})" if resource_id is not None else ""
        super().__init__(f"{detail}{resource_info}")


class InvalidInputException(DomainException):
    """Invalid input data outside the token endpoint."""
    kind = ErrorKind.INVALID
    error_code = "invalid_input"

    def __init__(self, detail: str = "Invalid input data"):
        super().__init__(detail)


class TokenAcquisitionError(DomainException):
    """The remote token service did not return a usable access token."""
    kind = ErrorKind.INTERNAL
    error_code = "token_acquisition_failed"

    def __init__(self, detail: str = "Failed to acquire access token", status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(detail)


class DatabaseOperationException(DomainException):
    """Error in a database operation."""
    kind = ErrorKind.INTERNAL
    error_code = "database_error"

    def __init__(self, detail: str = "Error executing database operation",
                 original_error: Optional[Exception] = None):
        error_info = f": {str(original_error)}" if original_error else ""
        super().__init__(f"{detail}{error_info}")
