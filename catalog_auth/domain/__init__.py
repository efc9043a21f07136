# catalog_auth/domain/__init__.py

"""
Domain layer: pure models, scope rules and the error taxonomy.
"""

from catalog_auth.domain.exceptions import (
    ErrorKind,
    DomainException,
    InvalidRequest,
    InvalidScope,
    UnsupportedGrantType,
    InvalidClient,
    ServerError,
    MissingBearerToken,
    TokenVerificationError,
    InsufficientPermissions,
    MissingManagementCredentials,
    ResourceNotFoundException,
    ResourceAlreadyExistsException,
    InvalidInputException,
    TokenAcquisitionError,
    DatabaseOperationException,
)

__all__ = [
    "ErrorKind",
    "DomainException",
    "InvalidRequest",
    "InvalidScope",
    "UnsupportedGrantType",
    "InvalidClient",
    "ServerError",
    "MissingBearerToken",
    "TokenVerificationError",
    "InsufficientPermissions",
    "MissingManagementCredentials",
    "ResourceNotFoundException",
    "ResourceAlreadyExistsException",
    "InvalidInputException",
    "TokenAcquisitionError",
    "DatabaseOperationException",
]
