# catalog_auth/adapters/outbound/persistence/repositories/__init__.py

"""
Repositories implementing the outbound persistence ports.
"""

from catalog_auth.adapters.outbound.persistence.repositories.base_repository import AsyncRepositoryBase
from catalog_auth.adapters.outbound.persistence.repositories.client_repository import (
    AsyncClientRepository,
    client_repository,
)
from catalog_auth.adapters.outbound.persistence.repositories.application_repository import (
    AsyncApplicationRepository,
    application_repository,
)

__all__ = [
    # Classes
    "AsyncRepositoryBase",
    "AsyncClientRepository",
    "AsyncApplicationRepository",

    # Instances
    "client_repository",
    "application_repository",
]
