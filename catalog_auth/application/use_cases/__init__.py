# catalog_auth/application/use_cases/__init__.py

"""
Application service module.

This package contains the application services that implement the business logic
of the application, organized according to functional domains.
"""

# Export service classes for easier imports
from catalog_auth.application.use_cases.client_use_cases import AsyncClientService
from catalog_auth.application.use_cases.application_use_cases import AsyncApplicationService
from catalog_auth.application.use_cases.scope_use_cases import AsyncScopeResolver
from catalog_auth.application.use_cases.token_use_cases import AsyncTokenService

# Export all services
__all__ = [
    "AsyncClientService",
    "AsyncApplicationService",
    "AsyncScopeResolver",
    "AsyncTokenService",
]
