# catalog_auth/adapters/outbound/persistence/models/__init__.py

"""
ORM models.

Importing this package registers every table on Base.metadata.
"""

from catalog_auth.adapters.outbound.persistence.models.base_model import Base
from catalog_auth.adapters.outbound.persistence.models.client_model import ClientRegistration
from catalog_auth.adapters.outbound.persistence.models.application_model import (
    Application,
    ApplicationComponent,
    ApplicationClientPermission,
)

__all__ = [
    "Base",
    "ClientRegistration",
    "Application",
    "ApplicationComponent",
    "ApplicationClientPermission",
]
